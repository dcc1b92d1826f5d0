"""
Performance metrics collection for a word count run.
"""

import os
import time
import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, asdict
from typing import Dict, Iterable

logger = logging.getLogger(__name__)


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human readable string."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds / 60)
    seconds = seconds % 60
    if minutes < 60:
        return f"{minutes}m {seconds:.1f}s"
    hours = int(minutes / 60)
    minutes = minutes % 60
    return f"{hours}h {minutes}m {seconds:.1f}s"


def total_size(paths: Iterable[str]) -> int:
    """Sum the sizes of the given files, ignoring the ones that do not exist."""
    return sum(os.path.getsize(p) for p in paths if os.path.exists(p))


@dataclass
class PipelineMetrics:
    """Metrics for a single pipeline run."""

    start_time: float = 0.0
    end_time: float = 0.0
    num_candidates: int = 0
    num_workers: int = 0
    num_keys: int = 0
    num_reducers: int = 0
    input_size_bytes: int = 0
    intermediate_size_bytes: int = 0
    output_size_bytes: int = 0
    phase_seconds: Dict[str, float] = field(default_factory=dict)

    @property
    def total_time_seconds(self) -> float:
        """Total run time in seconds."""
        return self.end_time - self.start_time

    def start(self):
        self.start_time = time.time()

    def finish(self):
        self.end_time = time.time()
        logger.info(f"Total duration: {format_duration(self.total_time_seconds)}")

    @contextmanager
    def phase(self, name: str):
        """Time a pipeline phase and log its duration once it ends."""
        logger.info(f"Starting {name} phase")
        started = time.time()
        try:
            yield
        finally:
            elapsed = time.time() - started
            self.phase_seconds[name] = elapsed
            logger.info(f"{name.capitalize()} phase took {format_duration(elapsed)}")

    def to_dict(self) -> dict:
        """Convert metrics to dictionary."""
        data = asdict(self)
        data['total_time_seconds'] = self.total_time_seconds
        return data

    def save_to_file(self, filepath: str):
        """Save metrics to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
