"""Batch image compression against the TinyPNG API."""

__version__ = "0.1.0"

from tinypng_batch.models.batch_summary import BatchSummary  # noqa: E402
from tinypng_batch.models.outcome import Outcome  # noqa: E402
from tinypng_batch.services.batch_processor import compress_batch  # noqa: E402
from tinypng_batch.services.compressor import compress_one  # noqa: E402
from tinypng_batch.services.tinify_client import TinifyClient  # noqa: E402

__all__ = [
    "BatchSummary",
    "Outcome",
    "TinifyClient",
    "__version__",
    "compress_batch",
    "compress_one",
]
