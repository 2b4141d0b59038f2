"""
Client-side balance tracking for shielded accounts.

On-chain balances are encrypted under the MXE key, not the user's key, so the
client cannot read them back. Instead it keeps a plaintext shadow of its four
asset balances and the account nonce it last observed:

  1. init_balance_tracker() when the account is created
  2. track_deposit / track_withdrawal / track_*_transfer after each confirmed op
  3. get_balance / get_balance_formatted to display
  4. is_in_sync / get_missed_operations against the on-chain nonce

Amounts are never validated; the chain is the source of truth and the nonce
tells the client when its shadow has gone stale.
"""

import logging
import threading
from enum import Enum

logger = logging.getLogger(__name__)

# ---- Configuration -----------------------------------------------------------

DEFAULT_DECIMALS = 6

ASSET_LABELS = {
    'usdc': 'USDC',
    'xaapl': 'xAAPL',
    'xtsla': 'xTSLA',
    'xgoog': 'xGOOG',
}

# ---- Errors ------------------------------------------------------------------

class BalanceTrackerError(Exception):
    """Base balance tracker error."""
    def __init__(self, msg: str = ""):
        super().__init__(msg)
        self.msg = msg

    def __str__(self):
        return self.msg or self.__class__.__name__


class UnknownAssetError(BalanceTrackerError, ValueError):
    """Asset tag outside the supported set."""
    def __init__(self, value):
        super().__init__(f"Unknown asset: {value!r} (expected one of {', '.join(ASSET_LABELS)})")
        self.value = value

# ---- Assets ------------------------------------------------------------------

class Asset(Enum):
    USDC = 'usdc'
    XAAPL = 'xaapl'
    XTSLA = 'xtsla'
    XGOOG = 'xgoog'

    @property
    def label(self) -> str:
        return ASSET_LABELS[self.value]

    @classmethod
    def parse(cls, value) -> "Asset":
        """Accept an Asset or its tag ('usdc', ' XAAPL ', ...)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise UnknownAssetError(value)

# ---- Tracker record ----------------------------------------------------------

class BalanceTracker:
    """
    Local shadow of one owner's shielded balances.
    Balances are integers in base units; last_known_nonce is the on-chain
    nonce the balances are believed to reflect.
    """
    def __init__(self, owner):
        self.owner = owner
        self.usdc = 0
        self.xaapl = 0
        self.xtsla = 0
        self.xgoog = 0
        self.last_known_nonce = 0
        self.lock = threading.Lock()

    def __repr__(self):
        return (
            f"BalanceTracker(owner={self.owner!r}, usdc={self.usdc}, xaapl={self.xaapl}, "
            f"xtsla={self.xtsla}, xgoog={self.xgoog}, last_known_nonce={self.last_known_nonce})"
        )


def read_field(tracker: BalanceTracker, asset: Asset) -> int:
    if asset is Asset.USDC:
        return tracker.usdc
    if asset is Asset.XAAPL:
        return tracker.xaapl
    if asset is Asset.XTSLA:
        return tracker.xtsla
    if asset is Asset.XGOOG:
        return tracker.xgoog
    raise UnknownAssetError(asset)


def write_field(tracker: BalanceTracker, asset: Asset, value: int):
    if asset is Asset.USDC:
        tracker.usdc = value
    elif asset is Asset.XAAPL:
        tracker.xaapl = value
    elif asset is Asset.XTSLA:
        tracker.xtsla = value
    elif asset is Asset.XGOOG:
        tracker.xgoog = value
    else:
        raise UnknownAssetError(asset)


def apply_delta(tracker: BalanceTracker, asset, delta: int, new_nonce: int, kind: str):
    asset = Asset.parse(asset)
    with tracker.lock:
        balance = read_field(tracker, asset) + delta
        write_field(tracker, asset, balance)
        tracker.last_known_nonce = new_nonce
    logger.debug("%s owner=%s asset=%s delta=%d balance=%d nonce=%d",
                 kind, tracker.owner, asset.value, delta, balance, new_nonce)

# ---- Tracking ----------------------------------------------------------------

def init_balance_tracker(owner) -> BalanceTracker:
    """New tracker with all four balances and the nonce at zero."""
    return BalanceTracker(owner)


def track_deposit(tracker: BalanceTracker, asset, amount: int, new_nonce: int):
    """Credit `amount` after a confirmed deposit; new_nonce is the account nonce after it."""
    apply_delta(tracker, asset, amount, new_nonce, "deposit")


def track_withdrawal(tracker: BalanceTracker, asset, amount: int, new_nonce: int):
    apply_delta(tracker, asset, -amount, new_nonce, "withdrawal")


def track_incoming_transfer(tracker: BalanceTracker, asset, amount: int, new_nonce: int):
    """Same effect as a deposit, for a peer-to-peer credit on the recipient's side."""
    apply_delta(tracker, asset, amount, new_nonce, "incoming_transfer")


def track_outgoing_transfer(tracker: BalanceTracker, asset, amount: int, new_nonce: int):
    apply_delta(tracker, asset, -amount, new_nonce, "outgoing_transfer")

# ---- Reads -------------------------------------------------------------------

def get_balance(tracker: BalanceTracker, asset) -> int:
    return read_field(tracker, Asset.parse(asset))


def format_units(amount: int, decimals: int = DEFAULT_DECIMALS) -> str:
    """
    Render base units as '<whole>.<fraction>' with exactly `decimals`
    fractional digits, truncating. A negative amount is rendered as '-'
    followed by its magnitude, so -1500000 becomes '-1.500000'.
    """
    if decimals < 0:
        raise ValueError("decimals must be >= 0")
    sign = "-" if amount < 0 else ""
    whole, fraction = divmod(abs(amount), 10 ** decimals)
    return f"{sign}{whole}.{str(fraction).zfill(decimals)}"


def get_balance_formatted(tracker: BalanceTracker, asset, decimals: int = DEFAULT_DECIMALS) -> str:
    return format_units(get_balance(tracker, asset), decimals)


def snapshot(tracker: BalanceTracker) -> dict:
    return {
        'owner': tracker.owner,
        'balances': {asset.value: read_field(tracker, asset) for asset in Asset},
        'last_known_nonce': tracker.last_known_nonce,
    }

# ---- Nonce sync --------------------------------------------------------------

def is_in_sync(tracker: BalanceTracker, on_chain_nonce: int) -> bool:
    return tracker.last_known_nonce == on_chain_nonce


def get_missed_operations(tracker: BalanceTracker, on_chain_nonce: int) -> int:
    """
    Number of on-chain operations this client did not record (e.g. someone
    sent a transfer). Zero when the tracker is level with or ahead of chain.
    """
    if on_chain_nonce > tracker.last_known_nonce:
        missed = on_chain_nonce - tracker.last_known_nonce
        logger.warning("owner=%s missed %d operation(s): tracked nonce %d, on-chain %d",
                       tracker.owner, missed, tracker.last_known_nonce, on_chain_nonce)
        return missed
    return 0


def next_nonce(tracker: BalanceTracker) -> int:
    return tracker.last_known_nonce + 1


def sync_nonce(tracker: BalanceTracker, on_chain_nonce: int):
    """
    Adopt the on-chain nonce. Balances are left alone and may now be stale;
    they can only be refreshed through the MPC side.
    """
    with tracker.lock:
        previous = tracker.last_known_nonce
        tracker.last_known_nonce = on_chain_nonce
    if previous != on_chain_nonce:
        logger.info("owner=%s nonce synced %d -> %d", tracker.owner, previous, on_chain_nonce)
