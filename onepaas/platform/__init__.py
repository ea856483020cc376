"""Platform adapters: subprocess execution and storage backends."""

from .process import ProcessError, run
from .storage import LocalStorage, MemoryStorage, Storage

__all__ = [
    "LocalStorage",
    "MemoryStorage",
    "ProcessError",
    "Storage",
    "run",
]
