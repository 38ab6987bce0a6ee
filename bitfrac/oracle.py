"""
Price feed ingestion and the oracle registry.
"""
from bitfrac import errors
from bitfrac.events import PRICE_UPDATED, ORACLE_UPDATED
from bitfrac.oracle_state import PriceFeed
from bitfrac.validation import is_valid_amount, is_valid_decimals, fits_uint64

DEFAULT_PRICE_MAX_AGE = 3600  # blocks


class PriceOracleFeed:
    """
    Latest price per asset.

    With strict_oracles off, any caller may report a price: the authorization
    predicate is "administrator, or the caller itself", which always holds.
    With strict_oracles on, only the administrator and enabled oracles may.
    """

    def __init__(self, admin_address: bytes, strict_oracles: bool = False,
                 price_max_age: int = DEFAULT_PRICE_MAX_AGE):
        self.admin_address = admin_address
        self.strict_oracles = strict_oracles
        self.price_max_age = price_max_age

    def is_authorized_oracle(self, state, caller: bytes) -> bool:
        if caller == self.admin_address:
            return True
        if self.strict_oracles:
            return state.is_oracle(caller)
        return True

    def set_oracle(self, state, ctx, address: bytes, enabled: bool) -> bool:
        if ctx.caller != self.admin_address:
            raise errors.AccessDenied("Only the administrator can manage oracles")
        state.set_oracle(address, enabled)
        ctx.emit(ORACLE_UPDATED, address=address, enabled=bool(enabled), updated_by=ctx.caller)
        return True

    def update_price(self, state, ctx, asset_id: int, price: int, decimals: int) -> bool:
        if not self.is_authorized_oracle(state, ctx.caller):
            raise errors.NotAuthorized("Caller is not an authorized oracle")

        asset = state.get_asset(asset_id)
        if asset is None:
            raise errors.NotFound(f"Asset {asset_id} not found")
        if not is_valid_amount(price) or not fits_uint64(price):
            raise errors.InvalidAmount("Price must be a positive 64-bit integer")
        if not is_valid_decimals(decimals):
            raise errors.InvalidAmount(f"Decimals {decimals} out of range")

        previous = state.get_price_feed(asset_id)
        previous_price = previous.price if previous else 0

        state.put_price_feed(asset_id, PriceFeed({
            'price': price,
            'decimals': decimals,
            'last_updated_height': ctx.height,
            'oracle': ctx.caller,
        }))
        asset.last_price_update_height = ctx.height
        state.put_asset(asset)

        ctx.emit(
            PRICE_UPDATED,
            asset_id=asset_id,
            price=price,
            decimals=decimals,
            oracle=ctx.caller,
            previous_price=previous_price,
        )
        return True

    def fresh_price(self, state, asset_id: int, height: int) -> PriceFeed:
        """Feed for `asset_id`, refused once it is older than price_max_age blocks."""
        feed = state.get_price_feed(asset_id)
        if feed is None:
            raise errors.NotFound(f"No price feed for asset {asset_id}")
        if feed.age(height) > self.price_max_age:
            raise errors.PriceExpired(
                f"Price for asset {asset_id} last updated at {feed.last_updated_height}"
            )
        return feed
