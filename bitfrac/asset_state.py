"""
On-ledger record for one tokenized asset.
"""


class AssetState:
    """
    Metadata, valuation and lifetime counters of a registered asset.

    Token balances are not stored here; see TokenLedger.
    """

    def __init__(self, data: dict):
        """
        Args:
            data: Dict as produced by to_dict()
        """
        self.asset_id = int(data['asset_id'])
        self.owner = bytes(data['owner'])
        self.metadata_uri = data['metadata_uri']
        self.value = int(data['value'])
        self.locked = bool(data.get('locked', False))
        self.creation_height = int(data['creation_height'])
        self.last_price_update_height = int(data.get('last_price_update_height', 0))
        self.total_dividends = int(data.get('total_dividends', 0))
        self._validate()

    @classmethod
    def new(cls, asset_id: int, owner: bytes, metadata_uri: str, value: int,
            height: int) -> 'AssetState':
        return cls({
            'asset_id': asset_id,
            'owner': owner,
            'metadata_uri': metadata_uri,
            'value': value,
            'locked': False,
            'creation_height': height,
            'last_price_update_height': 0,
            'total_dividends': 0,
        })

    def to_dict(self) -> dict:
        return {
            'asset_id': self.asset_id,
            'owner': self.owner,
            'metadata_uri': self.metadata_uri,
            'value': self.value,
            'locked': self.locked,
            'creation_height': self.creation_height,
            'last_price_update_height': self.last_price_update_height,
            'total_dividends': self.total_dividends,
        }

    def __repr__(self) -> str:
        return (
            f"AssetState("
            f"id={self.asset_id}, "
            f"owner={self.owner.hex()[:8]}, "
            f"value={self.value}, "
            f"locked={self.locked}, "
            f"dividends={self.total_dividends})"
        )

    def _validate(self):
        if self.total_dividends < 0:
            raise ValueError("Total dividends cannot be negative")
