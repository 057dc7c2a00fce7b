"""Public interface definitions for all external collaborators.

The engine touches storage and data sources only through the abstract base
classes defined here.  Concrete adapters live in ``tunequeue/providers/`` and
are selected once, in ``tunequeue/main.py``, when the application is built.

CONCRETE PROVIDER MAP:
    Interface               →  Concrete implementations (in tunequeue/providers/)
    ─────────────────────────────────────────────────────────────────────
    IPersistenceProvider    →  MemoryPersistenceProvider,
                               FilePersistenceProvider,
                               SQLitePersistenceProvider
    IDatasetProvider        →  JSONDatasetProvider
"""

from tunequeue.interfaces.dataset_provider import IDatasetProvider
from tunequeue.interfaces.persistence_provider import IPersistenceProvider

__all__ = [
    "IDatasetProvider",
    "IPersistenceProvider",
]
