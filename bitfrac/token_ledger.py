"""
Fractional unit balances per (asset, holder).

The supply of every asset is minted once at registration and only moves
between holders afterwards, so per-asset balances always sum to TOTAL_SUPPLY.
"""
from bitfrac import errors
from bitfrac.events import TOKEN_TRANSFER
from bitfrac.validation import is_valid_amount


class TokenLedger:
    def __init__(self, compliance):
        self.compliance = compliance

    def balance_of(self, state, holder: bytes, asset_id: int) -> int:
        return state.get_balance(asset_id, holder)

    def total_balance(self, state, asset_id: int) -> int:
        """Sum of all stored balances for the asset. Equals TOTAL_SUPPLY once registered."""
        return sum(state.holders(asset_id).values())

    def transfer(self, state, ctx, asset_id: int, to: bytes, amount: int) -> bool:
        sender = ctx.caller
        if not is_valid_amount(amount):
            raise errors.InvalidAmount("Transfer amount must be positive")
        asset = state.get_asset(asset_id)
        if asset is None:
            raise errors.NotFound(f"Asset {asset_id} not found")

        from_balance = state.get_balance(asset_id, sender)
        if from_balance < amount:
            raise errors.InsufficientBalance(
                f"Balance {from_balance} below transfer amount {amount}"
            )

        self.compliance.require_compliant(state, sender, ctx.height)
        self.compliance.require_compliant(state, to, ctx.height)

        if to == sender:
            from_after = to_after = from_balance
        else:
            to_before = state.get_balance(asset_id, to)
            if to_before == 0:
                # A new holder starts at the current dividend total
                state.set_last_claim(asset_id, to, asset.total_dividends)
            from_after = from_balance - amount
            to_after = to_before + amount
            state.set_balance(asset_id, sender, from_after)
            state.set_balance(asset_id, to, to_after)

        # "from" is a keyword, so the payload is built as a dict
        ctx.emit(TOKEN_TRANSFER, **{
            "asset_id": asset_id,
            "from": sender,
            "to": to,
            "amount": amount,
            "from_balance_after": from_after,
            "to_balance_after": to_after,
        })
        return True
