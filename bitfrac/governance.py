"""
Holder governance: proposals, stake-weighted votes and execution.
"""
from bitfrac import errors
from bitfrac.events import PROPOSAL_CREATED, VOTE_CAST, PROPOSAL_EXECUTED
from bitfrac.governance_state import Proposal, Vote
from bitfrac.state import PROPOSAL_COUNTER
from bitfrac.validation import (
    PROPOSAL_THRESHOLD, is_valid_title, is_valid_duration,
    is_valid_minimum_votes, is_valid_amount,
)


class GovernanceEngine:
    def __init__(self, compliance):
        self.compliance = compliance

    def get_proposal(self, state, proposal_id: int) -> Proposal:
        proposal = state.get_proposal(proposal_id)
        if proposal is None:
            raise errors.NotFound(f"Proposal {proposal_id} not found")
        return proposal

    def create_proposal(self, state, ctx, asset_id: int, title: str, duration: int,
                        minimum_votes: int) -> int:
        """
        Open a vote on `asset_id` lasting `duration` blocks.

        The caller must hold at least PROPOSAL_THRESHOLD units of the asset.
        Returns the new proposal id.
        """
        if not is_valid_title(title):
            raise errors.InvalidTitle("Title must be 1 to 256 characters")
        if not is_valid_duration(duration):
            raise errors.InvalidDuration(f"Duration {duration} out of range")
        if not is_valid_minimum_votes(minimum_votes):
            raise errors.InvalidVotes(f"Minimum votes {minimum_votes} out of range")
        if state.get_asset(asset_id) is None:
            raise errors.NotFound(f"Asset {asset_id} not found")

        balance = state.get_balance(asset_id, ctx.caller)
        if balance < PROPOSAL_THRESHOLD:
            raise errors.NotAuthorized(
                f"Holding {balance} below proposal threshold {PROPOSAL_THRESHOLD}"
            )

        proposal_id = state.next_id(PROPOSAL_COUNTER)
        proposal = Proposal({
            'proposal_id': proposal_id,
            'title': title,
            'asset_id': asset_id,
            'creator': ctx.caller,
            'start_height': ctx.height,
            'end_height': ctx.height + duration,
            'executed': False,
            'votes_for': 0,
            'votes_against': 0,
            'minimum_votes': minimum_votes,
        })
        state.put_proposal(proposal)

        ctx.emit(
            PROPOSAL_CREATED,
            proposal_id=proposal_id,
            creator=ctx.caller,
            asset_id=asset_id,
            title=title,
            duration=duration,
            start_height=proposal.start_height,
            end_height=proposal.end_height,
            minimum_votes=minimum_votes,
        )
        return proposal_id

    def vote(self, state, ctx, proposal_id: int, vote_for: bool, amount: int) -> bool:
        if not is_valid_amount(amount):
            raise errors.InvalidAmount("Vote amount must be positive")
        proposal = self.get_proposal(state, proposal_id)
        if not proposal.is_open(ctx.height):
            raise errors.VoteEnded(f"Voting on proposal {proposal_id} has ended")

        kyc = self.compliance.require_compliant(state, ctx.caller, ctx.height)

        if state.get_vote(proposal_id, ctx.caller) is not None:
            raise errors.VoteExists(f"Already voted on proposal {proposal_id}")

        balance = state.get_balance(proposal.asset_id, ctx.caller)
        if balance < amount:
            raise errors.InsufficientBalance(
                f"Voting power {balance} below vote amount {amount}"
            )

        if vote_for:
            proposal.votes_for += amount
        else:
            proposal.votes_against += amount
        state.put_proposal(proposal)
        state.put_vote(proposal_id, ctx.caller,
                       Vote({'amount': amount, 'vote_for': bool(vote_for), 'height': ctx.height}))

        ctx.emit(
            VOTE_CAST,
            proposal_id=proposal_id,
            voter=ctx.caller,
            vote_for=bool(vote_for),
            amount=amount,
            voter_balance=balance,
            kyc_level=kyc.level,
            votes_for=proposal.votes_for,
            votes_against=proposal.votes_against,
        )
        return True

    def execute_proposal(self, state, ctx, proposal_id: int) -> bool:
        proposal = self.get_proposal(state, proposal_id)
        if proposal.executed:
            raise errors.AlreadyExecuted(f"Proposal {proposal_id} already executed")
        if ctx.height < proposal.end_height:
            raise errors.ProposalActive(
                f"Proposal {proposal_id} open until height {proposal.end_height}"
            )
        if not proposal.has_quorum():
            raise errors.QuorumNotMet(
                f"{proposal.total_votes} votes cast, {proposal.minimum_votes} required"
            )
        if not proposal.has_majority():
            raise errors.MajorityNotReached(
                f"{proposal.votes_for} for, {proposal.votes_against} against"
            )

        proposal.executed = True
        state.put_proposal(proposal)

        ctx.emit(
            PROPOSAL_EXECUTED,
            proposal_id=proposal_id,
            asset_id=proposal.asset_id,
            votes_for=proposal.votes_for,
            votes_against=proposal.votes_against,
            total_votes=proposal.total_votes,
            executed_by=ctx.caller,
        )
        return True

    def proposal_status(self, state, proposal_id: int, height: int) -> str:
        return self.get_proposal(state, proposal_id).status(height)
