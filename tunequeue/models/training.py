"""Embedding-training models: hyper-parameters, progress and run reports.

``TrainingConfig`` is resolved once by the host application from a named
profile ("standard" or "mobile") plus explicit overrides.  The engine never
inspects the runtime platform itself.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TrainingProfile(str, Enum):
    """Named default sets for constrained vs. unconstrained hosts."""

    STANDARD = "standard"
    MOBILE = "mobile"


_PROFILE_DEFAULTS: dict[TrainingProfile, dict[str, Any]] = {
    TrainingProfile.STANDARD: {
        "embedding_dim": 16,
        "learning_rate": 0.01,
        "epochs": 50,
        "window_size": 2,
        "batch_size": 100,
        "use_mobile_optimization": False,
    },
    # Smaller vectors, fewer epochs, higher learning rate, and cooperative
    # yielding so a single-threaded host stays responsive.
    TrainingProfile.MOBILE: {
        "embedding_dim": 12,
        "learning_rate": 0.015,
        "epochs": 30,
        "window_size": 2,
        "batch_size": 50,
        "use_mobile_optimization": True,
    },
}


class TrainingConfig(BaseModel):
    """Hyper-parameters for one embedding training run."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    embedding_dim: int = Field(default=16, ge=1, le=512, alias="embeddingDim")
    learning_rate: float = Field(default=0.01, gt=0.0, le=1.0, alias="learningRate")
    epochs: int = Field(default=50, ge=0, alias="epochs")
    window_size: int = Field(default=2, ge=1, alias="windowSize")
    batch_size: int = Field(default=100, ge=1, alias="batchSize")
    # Enables periodic yielding to the event loop and unit-length
    # re-normalisation of every vector.
    use_mobile_optimization: bool = Field(default=False, alias="useMobileOptimization")
    # Yield to the event loop every N batches (mobile only).
    yield_every_batches: int = Field(default=5, ge=1)
    # Re-normalise every N epochs (mobile only).
    normalize_every_epochs: int = Field(default=10, ge=1)

    @classmethod
    def for_profile(
        cls,
        profile: TrainingProfile | str = TrainingProfile.STANDARD,
        **overrides: Any,
    ) -> TrainingConfig:
        """Build a config from *profile* defaults with explicit *overrides* on top.

        ``None`` overrides are ignored so callers can pass optional values
        straight through.
        """
        resolved = dict(_PROFILE_DEFAULTS[TrainingProfile(profile)])
        resolved.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**resolved)


class TrainingProgress(BaseModel):
    """Per-epoch progress report passed to an optional callback."""

    model_config = ConfigDict(frozen=True)

    epoch: int
    total_epochs: int
    # Average diagnostic loss (1 - cosine similarity) over the epoch's pairs.
    loss: float
    # Fraction of epochs completed, 0-1.
    progress: float = Field(ge=0.0, le=1.0)


class TrainingReport(BaseModel):
    """Summary of a completed training run."""

    model_config = ConfigDict(frozen=True)

    track_count: int
    new_track_count: int
    pair_count: int
    epochs: int
    final_loss: float
    mobile_optimized: bool
