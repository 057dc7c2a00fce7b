"""Concrete adapters for the interfaces in ``tunequeue.interfaces``."""
