"""
The asset ledger: every public operation of the system behind one facade.

Each mutating call runs against a fresh trie view rooted at the last committed
state root. On success the new root and the call's events are written in a
single DB batch; on any failure the view is dropped and nothing changes.
"""
import logging
import threading
import time
from typing import Optional

from bitfrac import errors
from bitfrac import core
from bitfrac.core import CallContext, Transaction
from bitfrac.db import DB
from bitfrac.trie import Trie, BLANK_ROOT
from bitfrac.state import LedgerState, ASSET_COUNTER, PROPOSAL_COUNTER
from bitfrac.events import EventLog, Event
from bitfrac.validation import TOTAL_SUPPLY
from bitfrac.compliance import ComplianceGate
from bitfrac.registry import AssetRegistry
from bitfrac.token_ledger import TokenLedger
from bitfrac.oracle import PriceOracleFeed, DEFAULT_PRICE_MAX_AGE
from bitfrac.governance import GovernanceEngine
from bitfrac.dividends import DividendDistributor
from bitfrac.monitoring import Monitor

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Reserved addresses
LEDGER_ADDRESS = b'\x00' * 19 + b'\x01'

STATE_ROOT_KEY = b'state_root'


class AssetLedger:
    def __init__(self, db_path: str = None, db: DB = None, admin_address: bytes = None,
                 chain_id: int = 1, strict_oracles: bool = False,
                 price_max_age: int = DEFAULT_PRICE_MAX_AGE,
                 monitoring_host: str = "127.0.0.1", monitoring_port: int = 9090):
        if not admin_address:
            raise ValueError("An administrator address is required.")
        if db:
            self.db = db
        elif db_path:
            self.db = DB(db_path)
        else:
            raise ValueError("Either db_path or a DB object must be provided.")

        self.admin_address = admin_address
        self.chain_id = chain_id
        self._lock = threading.Lock()

        self.state_root = self.db.get(STATE_ROOT_KEY) or BLANK_ROOT
        self.events = EventLog(self.db)

        self.compliance = ComplianceGate(admin_address)
        self.registry = AssetRegistry(admin_address, LEDGER_ADDRESS)
        self.tokens = TokenLedger(self.compliance)
        self.oracle = PriceOracleFeed(admin_address, strict_oracles, price_max_age)
        self.governance = GovernanceEngine(self.compliance)
        self.dividends = DividendDistributor()

        self.monitor = Monitor(self, host=monitoring_host, port=monitoring_port)
        logger.info(f"Ledger opened at root {self.state_root.hex()[:16]}, {len(self.events)} events")

    @classmethod
    def from_config(cls, config) -> 'AssetLedger':
        """Build a ledger (and its database) from a Config. Starts the metrics server if enabled."""
        db = DB(
            config.database.path,
            write_buffer_size=config.database.write_buffer_size,
            max_open_files=config.database.max_open_files,
            compression=config.database.compression,
        )
        try:
            ledger = cls(
                db=db,
                admin_address=config.ledger.admin_address_bytes,
                chain_id=config.ledger.chain_id,
                strict_oracles=config.ledger.strict_oracles,
                price_max_age=config.ledger.price_max_age,
                monitoring_host=config.monitoring.host,
                monitoring_port=config.monitoring.port,
            )
        except ValueError:
            db.close()
            raise
        if config.monitoring.enabled:
            ledger.monitor.start_server()
        return ledger

    def close(self):
        self.monitor.stop_server()
        self.db.close()

    # ==========================================================================
    # ATOMIC EXECUTION
    # ==========================================================================

    def _view(self) -> LedgerState:
        return LedgerState(Trie(self.db, root_hash=self.state_root))

    def _execute(self, operation: str, caller: bytes, height: int, fn, *args):
        """
        Run `fn(state, ctx, *args)` as one all-or-nothing call.

        The committed root only moves if fn returns normally.
        """
        with self._lock:
            start = time.time()
            state = self._view()
            ctx = CallContext(caller, height)
            try:
                result = fn(state, ctx, *args)
            except errors.LedgerError as e:
                logger.warning(f"{operation} rejected [{e.code}] {e.kind}: {e.message}")
                self.monitor.record_tx(operation, "rejected", time.time() - start)
                self.monitor.record_rejection(e.code)
                raise
            except Exception as e:
                logger.error(f"{operation} failed: {e}")
                self.monitor.record_tx(operation, "failed", time.time() - start)
                raise
            else:
                with self.db.write_batch() as batch:
                    batch.put(STATE_ROOT_KEY, state.root_hash)
                    self.events.append(batch, ctx.events)
                self.state_root = state.root_hash
                self.events.committed(ctx.events)
                self.monitor.record_tx(operation, "success", time.time() - start)
                logger.debug(f"{operation} committed root {self.state_root.hex()[:16]}")
                return result

    # ==========================================================================
    # ASSET REGISTRY
    # ==========================================================================

    def register_asset(self, caller: bytes, height: int, metadata_uri: str, value: int) -> int:
        return self._execute("register_asset", caller, height,
                             self.registry.register_asset, metadata_uri, value)

    def lock_asset(self, caller: bytes, height: int, asset_id: int) -> bool:
        return self._execute("lock_asset", caller, height, self.registry.lock_asset, asset_id)

    def unlock_asset(self, caller: bytes, height: int, asset_id: int) -> bool:
        return self._execute("unlock_asset", caller, height, self.registry.unlock_asset, asset_id)

    def transfer_asset_ownership(self, caller: bytes, height: int, asset_id: int,
                                 new_owner: bytes) -> bool:
        return self._execute("transfer_asset_ownership", caller, height,
                             self.registry.transfer_asset_ownership, asset_id, new_owner)

    def add_dividends(self, caller: bytes, height: int, asset_id: int, amount: int) -> int:
        return self._execute("add_dividends", caller, height,
                             self.registry.add_dividends, asset_id, amount)

    # ==========================================================================
    # TOKENS, COMPLIANCE, ORACLE
    # ==========================================================================

    def transfer(self, caller: bytes, height: int, asset_id: int, to: bytes, amount: int) -> bool:
        return self._execute("transfer", caller, height, self.tokens.transfer, asset_id, to, amount)

    def set_kyc(self, caller: bytes, height: int, address: bytes, approved: bool,
                level: int, expiry: int):
        return self._execute("set_kyc", caller, height,
                             self.compliance.set_kyc, address, approved, level, expiry)

    def update_price(self, caller: bytes, height: int, asset_id: int, price: int,
                     decimals: int) -> bool:
        return self._execute("update_price", caller, height,
                             self.oracle.update_price, asset_id, price, decimals)

    def set_oracle(self, caller: bytes, height: int, address: bytes, enabled: bool) -> bool:
        return self._execute("set_oracle", caller, height, self.oracle.set_oracle, address, enabled)

    # ==========================================================================
    # GOVERNANCE & DIVIDENDS
    # ==========================================================================

    def create_proposal(self, caller: bytes, height: int, asset_id: int, title: str,
                        duration: int, minimum_votes: int) -> int:
        return self._execute("create_proposal", caller, height, self.governance.create_proposal,
                             asset_id, title, duration, minimum_votes)

    def vote(self, caller: bytes, height: int, proposal_id: int, vote_for: bool,
             amount: int) -> bool:
        return self._execute("vote", caller, height, self.governance.vote,
                             proposal_id, vote_for, amount)

    def execute_proposal(self, caller: bytes, height: int, proposal_id: int) -> bool:
        return self._execute("execute_proposal", caller, height,
                             self.governance.execute_proposal, proposal_id)

    def claim_dividends(self, caller: bytes, height: int, asset_id: int) -> int:
        return self._execute("claim_dividends", caller, height, self.dividends.claim, asset_id)

    # ==========================================================================
    # SIGNED TRANSACTIONS
    # ==========================================================================

    def _dispatch(self, state, ctx, tx: Transaction):
        d = tx.data
        if tx.tx_type == core.REGISTER_ASSET:
            return self.registry.register_asset(state, ctx, d['metadata_uri'], d['value'])
        elif tx.tx_type == core.LOCK_ASSET:
            return self.registry.lock_asset(state, ctx, d['asset_id'])
        elif tx.tx_type == core.UNLOCK_ASSET:
            return self.registry.unlock_asset(state, ctx, d['asset_id'])
        elif tx.tx_type == core.TRANSFER_ASSET_OWNERSHIP:
            return self.registry.transfer_asset_ownership(
                state, ctx, d['asset_id'], bytes.fromhex(d['new_owner']))
        elif tx.tx_type == core.ADD_DIVIDENDS:
            return self.registry.add_dividends(state, ctx, d['asset_id'], d['amount'])
        elif tx.tx_type == core.TRANSFER:
            return self.tokens.transfer(state, ctx, d['asset_id'], bytes.fromhex(d['to']), d['amount'])
        elif tx.tx_type == core.SET_KYC:
            return self.compliance.set_kyc(
                state, ctx, bytes.fromhex(d['address']), d['approved'], d['level'], d['expiry'])
        elif tx.tx_type == core.UPDATE_PRICE:
            return self.oracle.update_price(state, ctx, d['asset_id'], d['price'], d['decimals'])
        elif tx.tx_type == core.SET_ORACLE:
            return self.oracle.set_oracle(state, ctx, bytes.fromhex(d['address']), d['enabled'])
        elif tx.tx_type == core.CLAIM_DIVIDENDS:
            return self.dividends.claim(state, ctx, d['asset_id'])
        elif tx.tx_type == core.CREATE_PROPOSAL:
            return self.governance.create_proposal(
                state, ctx, d['asset_id'], d['title'], d['duration'], d['minimum_votes'])
        elif tx.tx_type == core.VOTE:
            return self.governance.vote(state, ctx, d['proposal_id'], d['vote_for'], d['amount'])
        elif tx.tx_type == core.EXECUTE_PROPOSAL:
            return self.governance.execute_proposal(state, ctx, d['proposal_id'])
        raise errors.InvalidTransaction(f"Unknown transaction type: {tx.tx_type}")

    def apply_transaction(self, tx: Transaction, height: int):
        """
        Verify a signed transaction and run it as its sender.

        The transaction id is recorded in the same commit as its effects, so a
        second apply of the same transaction is refused.
        """
        if tx.chain_id != self.chain_id:
            raise errors.InvalidTransaction(f"Wrong chain ID. Expected {self.chain_id}, got {tx.chain_id}")
        is_valid, error = tx.validate_basic()
        if not is_valid:
            raise errors.InvalidTransaction(error)

        def run(state, ctx):
            if state.applied_at(tx.id) is not None:
                raise errors.ReplayedTransaction(f"Transaction {tx.id.hex()[:16]} already applied")
            result = self._dispatch(state, ctx, tx)
            state.mark_applied(tx.id, ctx.height)
            return result

        return self._execute(tx.tx_type.lower(), tx.sender_address, height, run)

    def apply_transactions(self, txs: list[Transaction], height: int) -> list[tuple[bool, object]]:
        """
        Apply transactions in order. Each one commits or fails on its own.

        Returns (ok, result_or_error) per transaction.
        """
        results = []
        for tx in txs:
            try:
                results.append((True, self.apply_transaction(tx, height)))
            except errors.LedgerError as e:
                results.append((False, e))
        return results

    # ==========================================================================
    # QUERIES
    # ==========================================================================

    def get_asset_info(self, asset_id: int):
        return self._view().get_asset(asset_id)

    def balance_of(self, holder: bytes, asset_id: int) -> int:
        return self.tokens.balance_of(self._view(), holder, asset_id)

    def get_holders(self, asset_id: int) -> dict[bytes, int]:
        return self._view().holders(asset_id)

    def total_balance(self, asset_id: int) -> int:
        return self.tokens.total_balance(self._view(), asset_id)

    def get_total_supply(self) -> int:
        return TOTAL_SUPPLY

    def get_circulating_supply(self) -> int:
        # Locked assets are not subtracted.
        return TOTAL_SUPPLY

    def get_kyc_status(self, address: bytes):
        return self._view().get_kyc(address)

    def is_compliant(self, address: bytes):
        return self.compliance.is_compliant(self._view(), address)

    def get_price_feed(self, asset_id: int):
        return self._view().get_price_feed(asset_id)

    def get_fresh_price(self, asset_id: int, height: int):
        return self.oracle.fresh_price(self._view(), asset_id, height)

    def get_oracles(self) -> list[bytes]:
        return self._view().oracles()

    def get_proposal(self, proposal_id: int):
        return self._view().get_proposal(proposal_id)

    def get_vote(self, proposal_id: int, voter: bytes):
        return self._view().get_vote(proposal_id, voter)

    def proposal_status(self, proposal_id: int, height: int) -> str:
        return self.governance.proposal_status(self._view(), proposal_id, height)

    def get_last_claim(self, asset_id: int, claimer: bytes) -> int:
        return self._view().get_last_claim(asset_id, claimer)

    def claimable_dividends(self, holder: bytes, asset_id: int) -> int:
        return self.dividends.claimable(self._view(), holder, asset_id)

    def last_asset_id(self) -> int:
        return self._view().get_counter(ASSET_COUNTER)

    def last_proposal_id(self) -> int:
        return self._view().get_counter(PROPOSAL_COUNTER)

    def get_events(self, since: int = 0, kind: Optional[str] = None) -> list[Event]:
        return self.events.since(since, kind)

    def status(self) -> dict:
        self.monitor.update()
        return {
            'chain_id': self.chain_id,
            'state_root': self.state_root.hex(),
            'admin_address': self.admin_address.hex(),
            'assets': self.last_asset_id(),
            'proposals': self.last_proposal_id(),
            'events': len(self.events),
            'strict_oracles': self.oracle.strict_oracles,
        }
