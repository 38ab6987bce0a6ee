"""
Asset registry: registration, locking, ownership and dividend funding.
"""
from bitfrac import errors
from bitfrac.asset_state import AssetState
from bitfrac.events import (
    ASSET_REGISTERED, ASSET_LOCKED, ASSET_UNLOCKED,
    ASSET_OWNERSHIP_TRANSFERRED, DIVIDENDS_ADDED,
)
from bitfrac.state import ASSET_COUNTER
from bitfrac.validation import (
    TOTAL_SUPPLY, is_valid_uri, is_valid_asset_value, is_valid_amount,
    is_valid_principal, fits_uint64,
)


class AssetRegistry:
    def __init__(self, admin_address: bytes, ledger_address: bytes):
        self.admin_address = admin_address
        self.ledger_address = ledger_address

    def get_asset(self, state, asset_id: int) -> AssetState:
        asset = state.get_asset(asset_id)
        if asset is None:
            raise errors.NotFound(f"Asset {asset_id} not found")
        return asset

    def _owned_asset(self, state, ctx, asset_id: int) -> AssetState:
        asset = self.get_asset(state, asset_id)
        if ctx.caller != asset.owner:
            raise errors.NotAuthorized(f"Caller does not own asset {asset_id}")
        return asset

    def register_asset(self, state, ctx, metadata_uri: str, value: int) -> int:
        """
        Create a new asset owned by the caller and mint the whole supply to them.

        Returns the new asset id.
        """
        if ctx.caller != self.admin_address:
            raise errors.AccessDenied("Only the administrator can register assets")
        if not is_valid_uri(metadata_uri):
            raise errors.InvalidURI("Metadata URI must be 1 to 256 characters")
        if not is_valid_asset_value(value):
            raise errors.InvalidValue(f"Asset value {value} out of range")

        asset_id = state.next_id(ASSET_COUNTER)
        asset = AssetState.new(asset_id, ctx.caller, metadata_uri, value, ctx.height)
        state.put_asset(asset)
        state.set_balance(asset_id, ctx.caller, TOTAL_SUPPLY)

        ctx.emit(
            ASSET_REGISTERED,
            asset_id=asset_id,
            owner=ctx.caller,
            metadata_uri=metadata_uri,
            asset_value=value,
            total_supply=TOTAL_SUPPLY,
        )
        return asset_id

    def lock_asset(self, state, ctx, asset_id: int) -> bool:
        asset = self._owned_asset(state, ctx, asset_id)
        if asset.locked:
            raise errors.InvalidState(f"Asset {asset_id} is already locked")
        asset.locked = True
        state.put_asset(asset)
        ctx.emit(ASSET_LOCKED, asset_id=asset_id, by=ctx.caller)
        return True

    def unlock_asset(self, state, ctx, asset_id: int) -> bool:
        asset = self._owned_asset(state, ctx, asset_id)
        if not asset.locked:
            raise errors.InvalidState(f"Asset {asset_id} is not locked")
        asset.locked = False
        state.put_asset(asset)
        ctx.emit(ASSET_UNLOCKED, asset_id=asset_id, by=ctx.caller)
        return True

    def transfer_asset_ownership(self, state, ctx, asset_id: int, new_owner: bytes) -> bool:
        """Hand the asset record to `new_owner`. Token balances are untouched."""
        asset = self._owned_asset(state, ctx, asset_id)
        if not is_valid_principal(new_owner, self.admin_address, self.ledger_address):
            raise errors.InvalidAddress("New owner cannot be the administrator or the ledger")

        previous_owner = asset.owner
        asset.owner = new_owner
        state.put_asset(asset)

        ctx.emit(
            ASSET_OWNERSHIP_TRANSFERRED,
            asset_id=asset_id,
            previous_owner=previous_owner,
            new_owner=new_owner,
        )
        return True

    def add_dividends(self, state, ctx, asset_id: int, amount: int) -> int:
        """Grow the asset's cumulative dividend pool. Returns the new total."""
        asset = self._owned_asset(state, ctx, asset_id)
        if not is_valid_amount(amount):
            raise errors.InvalidAmount("Dividend amount must be positive")

        new_total = asset.total_dividends + amount
        if not fits_uint64(new_total):
            raise errors.InvalidAmount("Dividend total exceeds the storable range")

        asset.total_dividends = new_total
        state.put_asset(asset)

        ctx.emit(
            DIVIDENDS_ADDED,
            asset_id=asset_id,
            amount=amount,
            new_total=new_total,
            added_by=ctx.caller,
        )
        return new_total
