"""
Input bounds for every ledger operation.

Pure predicates only: nothing here reads or writes state.
"""

# Protocol constants
TOTAL_SUPPLY = 100_000            # units minted per asset, fixed forever
MIN_ASSET_VALUE = 1_000
MAX_ASSET_VALUE = 1_000_000_000_000
MIN_DURATION = 12                 # blocks
MAX_DURATION = 144
MAX_KYC_LEVEL = 5
MAX_EXPIRY = 52_560               # max KYC horizon in blocks (~1 year)
MAX_STRING_LENGTH = 256
MAX_PRICE_DECIMALS = 18
PROPOSAL_THRESHOLD = TOTAL_SUPPLY // 10   # 10% of supply to open a proposal
MAX_UINT64 = 2 ** 64 - 1           # msgpack integer ceiling


def is_uint(value) -> bool:
    """Non-negative int. Booleans are rejected even though they subclass int."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def is_valid_amount(amount) -> bool:
    return is_uint(amount) and amount > 0


def is_valid_asset_value(value) -> bool:
    return is_uint(value) and MIN_ASSET_VALUE <= value <= MAX_ASSET_VALUE


def is_valid_duration(duration) -> bool:
    return is_uint(duration) and MIN_DURATION <= duration <= MAX_DURATION


def is_valid_kyc_level(level) -> bool:
    return is_uint(level) and level <= MAX_KYC_LEVEL


def is_valid_expiry(expiry, current_height: int) -> bool:
    """
    Expiry must lie strictly in the future and no further than MAX_EXPIRY
    blocks ahead of the current height.
    """
    if not is_uint(expiry):
        return False
    return expiry > current_height and (expiry - current_height) <= MAX_EXPIRY


def is_valid_minimum_votes(votes) -> bool:
    return is_uint(votes) and 0 < votes <= TOTAL_SUPPLY


def _is_bounded_string(value) -> bool:
    return isinstance(value, str) and 0 < len(value) <= MAX_STRING_LENGTH


def is_valid_uri(uri) -> bool:
    return _is_bounded_string(uri)


def is_valid_title(title) -> bool:
    return _is_bounded_string(title)


def is_valid_decimals(decimals) -> bool:
    return is_uint(decimals) and decimals <= MAX_PRICE_DECIMALS


def is_valid_principal(address: bytes, admin_address: bytes, ledger_address: bytes) -> bool:
    """
    Narrow guard used by ownership transfer: only the administrator and the
    ledger's own identity are excluded. Malformed addresses are not caught.
    """
    return address != admin_address and address != ledger_address


def fits_uint64(value: int) -> bool:
    return 0 <= value <= MAX_UINT64
