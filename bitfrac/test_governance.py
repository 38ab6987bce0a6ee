"""
Tests for proposals, stake-weighted voting and execution.
"""
import unittest
import shutil
import tempfile
from bitfrac import errors
from bitfrac.ledger import AssetLedger
from bitfrac.governance_state import STATUS_OPEN, STATUS_CLOSED, STATUS_EXECUTED
from bitfrac.events import VOTE_CAST, PROPOSAL_EXECUTED

ADMIN = b'\xaa' * 20
ALICE = b'\x11' * 20
BOB = b'\x22' * 20
CAROL = b'\x33' * 20


class GovernanceTestCase(unittest.TestCase):
    alice_units = 65_000
    bob_units = 25_000

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.ledger = AssetLedger(self.test_dir, admin_address=ADMIN)
        self.asset_id = self.ledger.register_asset(ADMIN, 1000, "ipfs://a", 1_000_000)
        for address in (ADMIN, ALICE, BOB, CAROL):
            self.ledger.set_kyc(ADMIN, 1000, address, True, 1, 5000)
        self.ledger.transfer(ADMIN, 1000, self.asset_id, ALICE, self.alice_units)
        self.ledger.transfer(ADMIN, 1000, self.asset_id, BOB, self.bob_units)

    def tearDown(self):
        self.ledger.close()
        shutil.rmtree(self.test_dir)


class TestProposals(GovernanceTestCase):
    def test_create_proposal(self):
        proposal_id = self.ledger.create_proposal(ALICE, 1000, self.asset_id, "Renovate lobby", 12, 50_000)
        self.assertEqual(proposal_id, 1)

        proposal = self.ledger.get_proposal(proposal_id)
        self.assertEqual(proposal.creator, ALICE)
        self.assertEqual(proposal.start_height, 1000)
        self.assertEqual(proposal.end_height, 1012)
        self.assertEqual(proposal.votes_for, 0)
        self.assertEqual(proposal.votes_against, 0)
        self.assertFalse(proposal.executed)
        self.assertEqual(self.ledger.last_proposal_id(), 1)

    def test_create_proposal_checks(self):
        with self.assertRaises(errors.InvalidTitle):
            self.ledger.create_proposal(ALICE, 1000, self.asset_id, "", 12, 50_000)
        with self.assertRaises(errors.InvalidDuration):
            self.ledger.create_proposal(ALICE, 1000, self.asset_id, "t", 11, 50_000)
        with self.assertRaises(errors.InvalidDuration):
            self.ledger.create_proposal(ALICE, 1000, self.asset_id, "t", 145, 50_000)
        with self.assertRaises(errors.InvalidVotes):
            self.ledger.create_proposal(ALICE, 1000, self.asset_id, "t", 12, 0)
        with self.assertRaises(errors.InvalidVotes):
            self.ledger.create_proposal(ALICE, 1000, self.asset_id, "t", 12, 100_001)
        with self.assertRaises(errors.NotFound):
            self.ledger.create_proposal(ALICE, 1000, 99, "t", 12, 50_000)
        self.assertEqual(self.ledger.last_proposal_id(), 0)

    def test_proposer_threshold(self):
        # ADMIN keeps exactly 10_000 units after the setup transfers
        self.assertEqual(self.ledger.balance_of(ADMIN, self.asset_id), 10_000)
        self.assertEqual(self.ledger.create_proposal(ADMIN, 1000, self.asset_id, "t", 12, 1), 1)
        with self.assertRaises(errors.NotAuthorized):
            self.ledger.create_proposal(CAROL, 1000, self.asset_id, "t", 12, 1)


class TestVoting(GovernanceTestCase):
    def setUp(self):
        super().setUp()
        self.proposal_id = self.ledger.create_proposal(
            ALICE, 1000, self.asset_id, "Sell the building", 12, 50_000)

    def test_vote_tallies(self):
        self.ledger.vote(ALICE, 1001, self.proposal_id, True, 65_000)
        self.ledger.vote(BOB, 1002, self.proposal_id, False, 25_000)

        proposal = self.ledger.get_proposal(self.proposal_id)
        self.assertEqual(proposal.votes_for, 65_000)
        self.assertEqual(proposal.votes_against, 25_000)

        vote = self.ledger.get_vote(self.proposal_id, BOB)
        self.assertEqual(vote.amount, 25_000)
        self.assertFalse(vote.vote_for)
        self.assertEqual(vote.height, 1002)

        event = self.ledger.get_events(kind=VOTE_CAST)[-1]
        self.assertEqual(event.data['voter_balance'], 25_000)
        self.assertEqual(event.data['kyc_level'], 1)
        self.assertEqual(event.data['votes_for'], 65_000)
        self.assertEqual(event.data['votes_against'], 25_000)

    def test_single_vote_per_voter(self):
        self.ledger.vote(ALICE, 1001, self.proposal_id, True, 1_000)
        with self.assertRaises(errors.VoteExists):
            self.ledger.vote(ALICE, 1002, self.proposal_id, False, 1_000)
        self.assertEqual(self.ledger.get_proposal(self.proposal_id).total_votes, 1_000)

    def test_vote_checks(self):
        with self.assertRaises(errors.InvalidAmount):
            self.ledger.vote(ALICE, 1001, self.proposal_id, True, 0)
        with self.assertRaises(errors.NotFound):
            self.ledger.vote(ALICE, 1001, 42, True, 10)
        with self.assertRaises(errors.InsufficientBalance):
            self.ledger.vote(BOB, 1001, self.proposal_id, True, 25_001)
        with self.assertRaises(errors.VoteEnded):
            self.ledger.vote(ALICE, 1012, self.proposal_id, True, 10)

    def test_vote_requires_kyc(self):
        self.ledger.set_kyc(ADMIN, 1001, BOB, False, 1, 5000)
        with self.assertRaises(errors.KYCRequired):
            self.ledger.vote(BOB, 1002, self.proposal_id, True, 10)

    def test_status_transitions(self):
        self.assertEqual(self.ledger.proposal_status(self.proposal_id, 1011), STATUS_OPEN)
        self.assertEqual(self.ledger.proposal_status(self.proposal_id, 1012), STATUS_CLOSED)


class TestExecution(GovernanceTestCase):
    def setUp(self):
        super().setUp()
        self.proposal_id = self.ledger.create_proposal(
            ALICE, 1000, self.asset_id, "Sell the building", 12, 50_000)

    def test_quorum_and_majority_pass(self):
        self.ledger.vote(ALICE, 1001, self.proposal_id, True, 65_000)
        self.ledger.vote(BOB, 1001, self.proposal_id, False, 25_000)

        with self.assertRaises(errors.ProposalActive):
            self.ledger.execute_proposal(CAROL, 1011, self.proposal_id)

        # Anyone may execute once voting has closed
        self.assertTrue(self.ledger.execute_proposal(CAROL, 1012, self.proposal_id))
        self.assertTrue(self.ledger.get_proposal(self.proposal_id).executed)
        self.assertEqual(self.ledger.proposal_status(self.proposal_id, 1012), STATUS_EXECUTED)

        event = self.ledger.get_events(kind=PROPOSAL_EXECUTED)[0]
        self.assertEqual(event.data['total_votes'], 90_000)
        self.assertEqual(event.data['executed_by'], CAROL)

        with self.assertRaises(errors.AlreadyExecuted):
            self.ledger.execute_proposal(ALICE, 1013, self.proposal_id)

    def test_quorum_not_met(self):
        self.ledger.vote(BOB, 1001, self.proposal_id, True, 25_000)
        with self.assertRaises(errors.QuorumNotMet):
            self.ledger.execute_proposal(ALICE, 1012, self.proposal_id)
        self.assertFalse(self.ledger.get_proposal(self.proposal_id).executed)

    def test_majority_not_reached(self):
        self.ledger.vote(ALICE, 1001, self.proposal_id, False, 65_000)
        self.ledger.vote(BOB, 1001, self.proposal_id, True, 25_000)
        with self.assertRaises(errors.MajorityNotReached):
            self.ledger.execute_proposal(ALICE, 1012, self.proposal_id)

    def test_execute_unknown(self):
        with self.assertRaises(errors.NotFound):
            self.ledger.execute_proposal(ALICE, 1012, 77)


class TestTie(GovernanceTestCase):
    alice_units = 50_000
    bob_units = 50_000

    def test_tie_does_not_pass(self):
        proposal_id = self.ledger.create_proposal(ALICE, 1000, self.asset_id, "Tie", 12, 50_000)
        self.ledger.vote(ALICE, 1001, proposal_id, True, 50_000)
        self.ledger.vote(BOB, 1001, proposal_id, False, 50_000)
        with self.assertRaises(errors.MajorityNotReached):
            self.ledger.execute_proposal(ALICE, 1012, proposal_id)


if __name__ == '__main__':
    unittest.main()
