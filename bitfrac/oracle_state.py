"""
Latest reported price for an asset.
"""
from decimal import Decimal


class PriceFeed:
    def __init__(self, data: dict):
        self.price = int(data['price'])
        self.decimals = int(data['decimals'])
        self.last_updated_height = int(data['last_updated_height'])
        self.oracle = bytes(data['oracle'])

    def to_dict(self) -> dict:
        return {
            'price': self.price,
            'decimals': self.decimals,
            'last_updated_height': self.last_updated_height,
            'oracle': self.oracle,
        }

    @property
    def display_price(self) -> Decimal:
        """Price scaled by its decimals, e.g. 1100000 with 6 decimals -> 1.1."""
        return Decimal(self.price) / (Decimal(10) ** self.decimals)

    def age(self, height: int) -> int:
        return height - self.last_updated_height

    def __repr__(self) -> str:
        return (
            f"PriceFeed(price={self.display_price}, "
            f"updated={self.last_updated_height}, "
            f"oracle={self.oracle.hex()[:8]})"
        )
