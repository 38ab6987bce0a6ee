"""
KYC gate: the administrator writes records, transfers and votes read them.
"""
from bitfrac import errors
from bitfrac.compliance_state import KYCRecord
from bitfrac.events import KYC_UPDATED
from bitfrac.validation import is_valid_kyc_level, is_valid_expiry


class ComplianceGate:
    def __init__(self, admin_address: bytes):
        self.admin_address = admin_address

    def set_kyc(self, state, ctx, address: bytes, approved: bool, level: int, expiry: int) -> KYCRecord:
        """
        Create or overwrite the KYC record for `address`.

        Only the administrator may call this. The expiry must fall in
        (height, height + MAX_EXPIRY].
        """
        if ctx.caller != self.admin_address:
            raise errors.AccessDenied("Only the administrator can set KYC status")
        if not is_valid_kyc_level(level):
            raise errors.InvalidKYCLevel(f"KYC level {level} out of range")
        if not is_valid_expiry(expiry, ctx.height):
            raise errors.InvalidExpiry(f"Expiry {expiry} invalid at height {ctx.height}")

        record = KYCRecord({'approved': bool(approved), 'level': level, 'expiry': expiry})
        state.put_kyc(address, record)

        ctx.emit(
            KYC_UPDATED,
            address=address,
            approved=record.approved,
            level=level,
            expiry=expiry,
            updated_by=ctx.caller,
        )
        return record

    def is_compliant(self, state, address: bytes) -> KYCRecord:
        """Stored record for `address`, whatever its status."""
        record = state.get_kyc(address)
        if record is None:
            raise errors.NotFound(f"No KYC record for {address.hex()}")
        return record

    def require_compliant(self, state, address: bytes, height: int) -> KYCRecord:
        record = state.get_kyc(address)
        if record is None or not record.approved:
            raise errors.KYCRequired(f"{address.hex()} has no approved KYC record")
        if record.is_expired(height):
            raise errors.KYCExpired(f"KYC for {address.hex()} expired at height {record.expiry}")
        return record
