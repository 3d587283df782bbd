"""In-memory and on-disk storage for emulated blockchain state: blocks, transactions, events and versioned ledger registers."""

__version__ = "0.1.0"

__all__ = [
    "changelog",
    "config",
    "diskstore",
    "encoding",
    "errors",
    "keys",
    "ledger",
    "memstore",
    "model",
    "results",
    "store",
]