"""Core engine services: catalog, models, ranking, queueing and persistence."""

from tunequeue.services.auto_queue import AutoQueueManager
from tunequeue.services.catalog import TrackCatalog
from tunequeue.services.cooccurrence import CooccurrenceModel
from tunequeue.services.embedding_trainer import EmbeddingTrainer
from tunequeue.services.ranker import SimilarityRanker, get_weights
from tunequeue.services.recommendation_service import RecommendationService
from tunequeue.services.state_persistence import StatePersistenceService

__all__ = [
    "AutoQueueManager",
    "CooccurrenceModel",
    "EmbeddingTrainer",
    "RecommendationService",
    "SimilarityRanker",
    "StatePersistenceService",
    "TrackCatalog",
    "get_weights",
]
