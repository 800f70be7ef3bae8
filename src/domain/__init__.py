"""Domain models and the asset pool matching engine.

Pool transactions hold integer subunits only; decimal amounts are converted
on the way in and back out through :class:`domain.assets.Asset`.
"""

__all__ = [
    "asset_pool",
    "assets",
    "balance_tracker",
    "closed_pool_lot",
    "ledger",
    "pool_transaction",
    "records",
    "tracker",
]
