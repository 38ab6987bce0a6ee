"""
KYC record for one address.
"""


class KYCRecord:
    def __init__(self, data: dict):
        self.approved = bool(data['approved'])
        self.level = int(data['level'])
        self.expiry = int(data['expiry'])

    def to_dict(self) -> dict:
        return {
            'approved': self.approved,
            'level': self.level,
            'expiry': self.expiry,
        }

    def is_expired(self, height: int) -> bool:
        return self.expiry <= height

    def is_valid_at(self, height: int) -> bool:
        """Approved and not yet expired at `height`."""
        return self.approved and not self.is_expired(height)

    def __repr__(self) -> str:
        return f"KYCRecord(approved={self.approved}, level={self.level}, expiry={self.expiry})"
