"""Dataset providers: sources for the track catalog and session log."""

from tunequeue.providers.dataset.json_dataset_provider import JSONDatasetProvider

__all__ = ["JSONDatasetProvider"]
