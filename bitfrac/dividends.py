"""
Pro-rata dividend accounting.

Each claimer keeps a checkpoint into the asset's cumulative dividend total;
a claim pays the holder's share of everything added since that checkpoint.
Payout itself happens off-ledger.
"""
from bitfrac import errors
from bitfrac.events import DIVIDENDS_CLAIMED
from bitfrac.validation import TOTAL_SUPPLY


def compute_claimable(balance: int, total_dividends: int, last_claimed: int) -> int:
    # Integer division truncates; the remainder stays unclaimed.
    return balance * (total_dividends - last_claimed) // TOTAL_SUPPLY


class DividendDistributor:
    def claimable(self, state, holder: bytes, asset_id: int) -> int:
        asset = state.get_asset(asset_id)
        if asset is None:
            raise errors.NotFound(f"Asset {asset_id} not found")
        return compute_claimable(
            state.get_balance(asset_id, holder),
            asset.total_dividends,
            state.get_last_claim(asset_id, holder),
        )

    def claim(self, state, ctx, asset_id: int) -> int:
        asset = state.get_asset(asset_id)
        if asset is None:
            raise errors.NotFound(f"Asset {asset_id} not found")

        balance = state.get_balance(asset_id, ctx.caller)
        previous_claim = state.get_last_claim(asset_id, ctx.caller)
        amount = compute_claimable(balance, asset.total_dividends, previous_claim)
        if amount == 0:
            raise errors.NothingToClaim(f"No dividends to claim on asset {asset_id}")

        state.set_last_claim(asset_id, ctx.caller, asset.total_dividends)

        ctx.emit(
            DIVIDENDS_CLAIMED,
            asset_id=asset_id,
            claimer=ctx.caller,
            amount=amount,
            balance_at_claim=balance,
            total_dividends=asset.total_dividends,
            previous_claim=previous_claim,
        )
        return amount
