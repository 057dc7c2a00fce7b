"""TuneQueue: track recommendations and a self-refilling playback queue."""

__version__ = "0.1.0"
