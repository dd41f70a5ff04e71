"""
Dedup worker - runs DedupPipeline off the caller's thread.
"""

from pathlib import Path
from typing import Optional

from ..codec import FrameCodec
from ..config import DedupConfig, get_dedup_config
from ..logging import get_logger
from ..modules.dedup_pipeline import DedupPipeline
from ..progress import ProgressSink
from .base import BackgroundJob

logger = get_logger(__name__)


class DedupWorker:
    """
    Validates options synchronously, then runs the pipeline on a background
    job. Progress and the terminal ``complete``/``error`` event go to the sink.

    Example:
        >>> worker = DedupWorker(GifsicleCodec(), sink)
        >>> job = worker.submit(Path("in.gif"), Path("out.gif"))
        >>> job.done.wait()
        >>> job.result.kept_frames
        37
    """

    worker_name = "dedup"

    def __init__(
        self,
        codec: FrameCodec,
        sink: Optional[ProgressSink] = None,
        config: Optional[DedupConfig] = None,
    ):
        self.config = config or get_dedup_config()
        self.pipeline = DedupPipeline(codec, sink=sink, config=self.config)

    def submit(self, source: Path, output: Path, options: Optional[DedupConfig] = None) -> BackgroundJob:
        """
        Start deduplication and return the job handle immediately.

        Raises:
            InvalidParameterError: Options out of range (no job is started)
        """
        options = options or self.config
        self.pipeline.validate(options)

        job = BackgroundJob(self.worker_name, lambda: self.pipeline.run(source, output, options))
        logger.info(f"[{job.job_id}] Deduplicating {source} -> {output}")
        return job.start()
