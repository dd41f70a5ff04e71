"""Background workers and the extraction control surface."""

from .base import BackgroundJob
from .dedup import DedupWorker
from .extract import ExtractionSupervisor, PreparedSource
