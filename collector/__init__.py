"""Cloud collector for load-test samples."""

__version__ = "0.1.0"

__all__ = [
    "cloud",
    "config",
    "metrics",
    "output",
    "stats",
    "webapi",
]
