"""
Error taxonomy for the ledger.

Every rejected operation raises one of these. Each class carries a stable
numeric code so off-chain callers can match on the exact cause.
"""


class LedgerError(Exception):
    """Base class for all ledger failures."""
    code = 0

    def __init__(self, message: str = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__

    @property
    def kind(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict:
        return {'code': self.code, 'kind': self.kind, 'message': self.message}


# --- Access control ---

class AccessError(LedgerError):
    pass


class AccessDenied(AccessError):
    """Caller is not the administrator."""
    code = 100


class NotAuthorized(AccessError):
    """Caller is not the asset owner, not an oracle, or holds too little."""
    code = 104


# --- Not found ---

class NotFound(LedgerError):
    code = 101


# --- Validation ---

class ValidationError(LedgerError):
    """Raised when an input or transaction fails validation."""
    pass


class InvalidState(ValidationError):
    code = 102


class InvalidAmount(ValidationError):
    code = 103


class InvalidURI(ValidationError):
    code = 110


class InvalidValue(ValidationError):
    code = 111


class InvalidDuration(ValidationError):
    code = 112


class InvalidKYCLevel(ValidationError):
    code = 113


class InvalidExpiry(ValidationError):
    code = 114


class InvalidVotes(ValidationError):
    code = 115


class InvalidAddress(ValidationError):
    code = 116


class InvalidTitle(ValidationError):
    code = 117


class InvalidTransaction(ValidationError):
    code = 123


class ReplayedTransaction(ValidationError):
    code = 124


# --- Compliance ---

class ComplianceError(LedgerError):
    pass


class KYCRequired(ComplianceError):
    """No KYC record, or the record is not approved."""
    code = 105


class KYCExpired(KYCRequired):
    """KYC record exists and is approved but its expiry height has passed."""
    code = 125


# --- Governance ---

class GovernanceError(LedgerError):
    pass


class VoteExists(GovernanceError):
    code = 106


class VoteEnded(GovernanceError):
    code = 107


class ProposalActive(GovernanceError):
    """Execution attempted before the voting window closed."""
    code = 118


class AlreadyExecuted(GovernanceError):
    code = 119


class QuorumNotMet(GovernanceError):
    code = 120


class MajorityNotReached(GovernanceError):
    code = 121


# --- Conservation ---

class ConservationError(LedgerError):
    pass


class InsufficientBalance(ConservationError):
    code = 109


# --- Dividends / oracle ---

class NothingToClaim(LedgerError):
    code = 122


class PriceExpired(LedgerError):
    code = 108


ERRORS_BY_CODE = {}
for _cls in (AccessDenied, NotAuthorized, NotFound, InvalidState, InvalidAmount,
             InvalidURI, InvalidValue, InvalidDuration, InvalidKYCLevel,
             InvalidExpiry, InvalidVotes, InvalidAddress, InvalidTitle,
             InvalidTransaction, ReplayedTransaction, KYCRequired, KYCExpired, VoteExists,
             VoteEnded, ProposalActive, AlreadyExecuted, QuorumNotMet,
             MajorityNotReached, InsufficientBalance, NothingToClaim, PriceExpired):
    ERRORS_BY_CODE.setdefault(_cls.code, _cls)
del _cls
