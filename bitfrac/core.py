"""
Signed transactions and the per-call execution context.
"""
import time
import msgpack
from typing import Optional

from bitfrac.crypto import generate_hash, public_key_to_address, sign, verify_signature
from bitfrac.events import Event

REGISTER_ASSET = "REGISTER_ASSET"
LOCK_ASSET = "LOCK_ASSET"
UNLOCK_ASSET = "UNLOCK_ASSET"
TRANSFER_ASSET_OWNERSHIP = "TRANSFER_ASSET_OWNERSHIP"
ADD_DIVIDENDS = "ADD_DIVIDENDS"
TRANSFER = "TRANSFER"
SET_KYC = "SET_KYC"
UPDATE_PRICE = "UPDATE_PRICE"
SET_ORACLE = "SET_ORACLE"
CLAIM_DIVIDENDS = "CLAIM_DIVIDENDS"
CREATE_PROPOSAL = "CREATE_PROPOSAL"
VOTE = "VOTE"
EXECUTE_PROPOSAL = "EXECUTE_PROPOSAL"

# Required payload fields and their types per transaction type.
# Addresses travel as hex strings.
TX_SCHEMAS = {
    REGISTER_ASSET: {'metadata_uri': str, 'value': int},
    LOCK_ASSET: {'asset_id': int},
    UNLOCK_ASSET: {'asset_id': int},
    TRANSFER_ASSET_OWNERSHIP: {'asset_id': int, 'new_owner': str},
    ADD_DIVIDENDS: {'asset_id': int, 'amount': int},
    TRANSFER: {'asset_id': int, 'to': str, 'amount': int},
    SET_KYC: {'address': str, 'approved': bool, 'level': int, 'expiry': int},
    UPDATE_PRICE: {'asset_id': int, 'price': int, 'decimals': int},
    SET_ORACLE: {'address': str, 'enabled': bool},
    CLAIM_DIVIDENDS: {'asset_id': int},
    CREATE_PROPOSAL: {'asset_id': int, 'title': str, 'duration': int, 'minimum_votes': int},
    VOTE: {'proposal_id': int, 'vote_for': bool, 'amount': int},
    EXECUTE_PROPOSAL: {'proposal_id': int},
}

ADDRESS_FIELDS = ('new_owner', 'to', 'address')


class CallContext:
    """
    Host-supplied context for one call: the verified caller and the current
    block height. Collects the events the call emits; they are published only
    if the call commits.
    """

    def __init__(self, caller: bytes, height: int):
        self.caller = caller
        self.height = height
        self.events: list[Event] = []

    def emit(self, kind: str, **data) -> Event:
        event = Event(kind, data, self.caller, self.height)
        self.events.append(event)
        return event


class Transaction:
    def __init__(self,
                 sender_public_key: str,
                 tx_type: str,
                 data: dict,
                 nonce: int = 0,
                 signature: Optional[bytes] = None,
                 timestamp: Optional[float] = None,
                 chain_id: int = 1):
        self.sender_public_key = sender_public_key
        self.tx_type = tx_type
        self.data = data
        self.nonce = nonce
        self.timestamp = timestamp or time.time()
        self.signature = signature
        self.chain_id = chain_id

    @classmethod
    def from_dict(cls, data: dict):
        """Creates a Transaction object from a dictionary."""
        signature = data.get("signature")
        if isinstance(signature, str):
            signature = bytes.fromhex(signature)
        return cls(
            sender_public_key=data["sender_public_key"],
            tx_type=data["tx_type"],
            data=data["data"],
            nonce=data.get("nonce", 0),
            signature=signature,
            timestamp=data.get("timestamp"),
            chain_id=data.get("chain_id", 1),
        )

    def to_dict(self, include_signature=True):
        data = {
            "sender_public_key": self.sender_public_key,
            "tx_type": self.tx_type,
            "data": self.data,
            "nonce": self.nonce,
            "timestamp": self.timestamp,
            "chain_id": self.chain_id,
        }
        if include_signature and self.signature:
            data["signature"] = self.signature
        return data

    def get_signing_data(self) -> bytes:
        """Returns the canonical byte representation for signing."""
        return msgpack.packb(self.to_dict(include_signature=False), use_bin_type=True)

    def sign(self, private_key):
        self.signature = sign(private_key, self.get_signing_data())

    def verify_signature(self) -> bool:
        if not self.signature:
            return False
        return verify_signature(
            self.sender_public_key,
            self.signature,
            self.get_signing_data()
        )

    @property
    def id(self) -> bytes:
        """The unique hash identifier of the transaction."""
        return generate_hash(self.get_signing_data())

    @property
    def sender_address(self) -> bytes:
        return public_key_to_address(self.sender_public_key)

    def validate_basic(self) -> tuple[bool, str]:
        """
        Stateless checks: signature and payload shape.
        Returns (is_valid, error_message)
        """
        if not self.verify_signature():
            return False, "Invalid signature"

        schema = TX_SCHEMAS.get(self.tx_type)
        if schema is None:
            return False, f"Unknown transaction type: {self.tx_type}"
        if not isinstance(self.data, dict):
            return False, "Transaction data must be a mapping"

        for field, expected in schema.items():
            if field not in self.data:
                return False, f"{self.tx_type} requires '{field}'"
            value = self.data[field]
            # bool is an int subclass; keep the two apart
            if expected is int and isinstance(value, bool):
                return False, f"'{field}' must be an integer"
            if not isinstance(value, expected):
                return False, f"'{field}' must be of type {expected.__name__}"

        for field in ADDRESS_FIELDS:
            if field in schema:
                try:
                    bytes.fromhex(self.data[field])
                except ValueError:
                    return False, f"'{field}' is not a hex address"

        return True, ""
