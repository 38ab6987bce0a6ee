"""
Append-only event log for off-chain indexers.

Events are written in the same DB batch as the state root they belong to and
are never read back into ledger state.
"""
import logging
import msgpack
from typing import Optional

from bitfrac.utils.encoding import encode_uint, decode_uint

logger = logging.getLogger(__name__)

EVENT_PREFIX = b"event:"
EVENT_COUNT_KEY = b"event_count"

ASSET_REGISTERED = "asset-registered"
ASSET_LOCKED = "asset-locked"
ASSET_UNLOCKED = "asset-unlocked"
ASSET_OWNERSHIP_TRANSFERRED = "asset-ownership-transferred"
DIVIDENDS_ADDED = "dividends-added"
DIVIDENDS_CLAIMED = "dividends-claimed"
TOKEN_TRANSFER = "token-transfer"
KYC_UPDATED = "kyc-updated"
PRICE_UPDATED = "price-updated"
ORACLE_UPDATED = "oracle-updated"
PROPOSAL_CREATED = "proposal-created"
VOTE_CAST = "vote-cast"
PROPOSAL_EXECUTED = "proposal-executed"


class Event:
    def __init__(self, kind: str, data: dict, caller: bytes, height: int,
                 seq: Optional[int] = None):
        self.kind = kind
        self.data = data
        self.caller = caller
        self.height = height
        self.seq = seq

    @classmethod
    def from_dict(cls, d: dict) -> 'Event':
        return cls(
            kind=d['kind'],
            data=d['data'],
            caller=d['caller'],
            height=d['height'],
            seq=d.get('seq'),
        )

    def to_dict(self) -> dict:
        return {
            'seq': self.seq,
            'kind': self.kind,
            'data': self.data,
            'caller': self.caller,
            'height': self.height,
        }

    def to_json_dict(self) -> dict:
        """Same as to_dict() with every bytes value rendered as hex."""
        return _hexify(self.to_dict())

    def encode(self) -> bytes:
        return msgpack.packb(self.to_dict(), use_bin_type=True)

    @classmethod
    def decode(cls, raw: bytes) -> 'Event':
        return cls.from_dict(msgpack.unpackb(raw, raw=False))

    def __repr__(self) -> str:
        return f"Event(#{self.seq} {self.kind} @{self.height})"


def _hexify(value):
    if isinstance(value, bytes):
        return value.hex()
    if isinstance(value, dict):
        return {k: _hexify(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_hexify(v) for v in value]
    return value


class EventLog:
    """Sequenced events persisted under `event:<seq>`."""

    def __init__(self, db):
        self.db = db
        raw = db.get(EVENT_COUNT_KEY)
        self.count = decode_uint(raw) if raw else 0

    def append(self, batch, events: list[Event]) -> list[Event]:
        """Assign sequence numbers and stage the events into a DB batch."""
        seq = self.count
        for event in events:
            event.seq = seq
            batch.put(EVENT_PREFIX + encode_uint(seq), event.encode())
            seq += 1
        batch.put(EVENT_COUNT_KEY, encode_uint(seq))
        return events

    def committed(self, events: list[Event]):
        """Advance the in-memory count once the batch has been written."""
        self.count += len(events)
        for event in events:
            logger.info(f"Event #{event.seq} {event.kind} at height {event.height}: {event.data}")

    def get(self, seq: int) -> Optional[Event]:
        raw = self.db.get(EVENT_PREFIX + encode_uint(seq))
        return Event.decode(raw) if raw else None

    def since(self, seq: int = 0, kind: Optional[str] = None) -> list[Event]:
        events = []
        for key, raw in self.db.iterator(prefix=EVENT_PREFIX):
            if decode_uint(key[len(EVENT_PREFIX):]) < seq:
                continue
            event = Event.decode(raw)
            if kind is None or event.kind == kind:
                events.append(event)
        return events

    def __len__(self) -> int:
        return self.count
