"""Personal finance ledger: categories, transactions and dashboard views."""

__version__ = "0.1.0"
