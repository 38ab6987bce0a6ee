"""
Typed accessors over the state trie.

Every key family gets a fixed prefix; integer ids are encoded fixed-width so
per-asset and per-proposal ranges can be walked with Trie.items().
"""
import msgpack
from typing import Optional

from bitfrac.trie import Trie
from bitfrac.utils.encoding import encode_uint
from bitfrac.asset_state import AssetState
from bitfrac.compliance_state import KYCRecord
from bitfrac.oracle_state import PriceFeed
from bitfrac.governance_state import Proposal, Vote

COUNTER_PREFIX = b"COUNTER:"
ASSET_PREFIX = b"ASSET:"
BALANCE_PREFIX = b"BALANCE:"
KYC_PREFIX = b"KYC:"
PRICE_PREFIX = b"PRICE:"
PROPOSAL_PREFIX = b"PROPOSAL:"
VOTE_PREFIX = b"VOTE:"
CLAIM_PREFIX = b"CLAIM:"
ORACLE_PREFIX = b"ORACLE:"
APPLIED_TX_PREFIX = b"TX:"

ASSET_COUNTER = b"asset"
PROPOSAL_COUNTER = b"proposal"


def _pack(obj) -> bytes:
    return msgpack.packb(obj, use_bin_type=True)


def _unpack(raw: bytes):
    return msgpack.unpackb(raw, raw=False)


class LedgerState:
    """A read/write view of the ledger at one trie root."""

    def __init__(self, trie: Trie):
        self.trie = trie

    @property
    def root_hash(self) -> bytes:
        return self.trie.root_hash

    def _get_record(self, key: bytes):
        raw = self.trie.get(key)
        return _unpack(raw) if raw else None

    def _put_record(self, key: bytes, record):
        self.trie.set(key, _pack(record))

    # ==========================================================================
    # COUNTERS
    # ==========================================================================

    def get_counter(self, name: bytes) -> int:
        return self._get_record(COUNTER_PREFIX + name) or 0

    def next_id(self, name: bytes) -> int:
        """Increment the named sequence and return the new value."""
        value = self.get_counter(name) + 1
        self._put_record(COUNTER_PREFIX + name, value)
        return value

    # ==========================================================================
    # ASSETS & BALANCES
    # ==========================================================================

    def get_asset(self, asset_id: int) -> Optional[AssetState]:
        data = self._get_record(ASSET_PREFIX + encode_uint(asset_id))
        return AssetState(data) if data else None

    def put_asset(self, asset: AssetState):
        self._put_record(ASSET_PREFIX + encode_uint(asset.asset_id), asset.to_dict())

    def get_balance(self, asset_id: int, holder: bytes) -> int:
        return self._get_record(BALANCE_PREFIX + encode_uint(asset_id) + holder) or 0

    def set_balance(self, asset_id: int, holder: bytes, amount: int):
        if amount < 0:
            raise ValueError("Balance cannot be negative")
        self._put_record(BALANCE_PREFIX + encode_uint(asset_id) + holder, amount)

    def holders(self, asset_id: int) -> dict[bytes, int]:
        """Every address that has ever held units of the asset, with its balance."""
        prefix = BALANCE_PREFIX + encode_uint(asset_id)
        return {key[len(prefix):]: _unpack(raw) for key, raw in self.trie.items(prefix)}

    # ==========================================================================
    # COMPLIANCE & ORACLES
    # ==========================================================================

    def get_kyc(self, address: bytes) -> Optional[KYCRecord]:
        data = self._get_record(KYC_PREFIX + address)
        return KYCRecord(data) if data else None

    def put_kyc(self, address: bytes, record: KYCRecord):
        self._put_record(KYC_PREFIX + address, record.to_dict())

    def get_price_feed(self, asset_id: int) -> Optional[PriceFeed]:
        data = self._get_record(PRICE_PREFIX + encode_uint(asset_id))
        return PriceFeed(data) if data else None

    def put_price_feed(self, asset_id: int, feed: PriceFeed):
        self._put_record(PRICE_PREFIX + encode_uint(asset_id), feed.to_dict())

    def is_oracle(self, address: bytes) -> bool:
        return bool(self._get_record(ORACLE_PREFIX + address))

    def set_oracle(self, address: bytes, enabled: bool):
        # Disabled oracles keep a record; the trie has no delete.
        self._put_record(ORACLE_PREFIX + address, bool(enabled))

    def oracles(self) -> list[bytes]:
        return [key[len(ORACLE_PREFIX):] for key, raw in self.trie.items(ORACLE_PREFIX)
                if _unpack(raw)]

    # ==========================================================================
    # GOVERNANCE
    # ==========================================================================

    def get_proposal(self, proposal_id: int) -> Optional[Proposal]:
        data = self._get_record(PROPOSAL_PREFIX + encode_uint(proposal_id))
        return Proposal(data) if data else None

    def put_proposal(self, proposal: Proposal):
        self._put_record(PROPOSAL_PREFIX + encode_uint(proposal.proposal_id), proposal.to_dict())

    def get_vote(self, proposal_id: int, voter: bytes) -> Optional[Vote]:
        data = self._get_record(VOTE_PREFIX + encode_uint(proposal_id) + voter)
        return Vote(data) if data else None

    def put_vote(self, proposal_id: int, voter: bytes, vote: Vote):
        self._put_record(VOTE_PREFIX + encode_uint(proposal_id) + voter, vote.to_dict())

    # ==========================================================================
    # DIVIDENDS
    # ==========================================================================

    def get_last_claim(self, asset_id: int, claimer: bytes) -> int:
        return self._get_record(CLAIM_PREFIX + encode_uint(asset_id) + claimer) or 0

    def set_last_claim(self, asset_id: int, claimer: bytes, total: int):
        self._put_record(CLAIM_PREFIX + encode_uint(asset_id) + claimer, total)

    # ==========================================================================
    # REPLAY GUARD
    # ==========================================================================

    def applied_at(self, tx_id: bytes) -> Optional[int]:
        return self._get_record(APPLIED_TX_PREFIX + tx_id)

    def mark_applied(self, tx_id: bytes, height: int):
        self._put_record(APPLIED_TX_PREFIX + tx_id, height)
