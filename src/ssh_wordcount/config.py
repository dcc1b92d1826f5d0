"""
Runtime configuration for the master and the workers.
Values come from environment variables, read once at process start.
"""

import os
import shlex
import logging
from dataclasses import dataclass, field
from typing import List, Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

DEFAULT_QUEUE_CAPACITY = 15000
DEFAULT_RESULT_FILE = "wordcount.txt"


def _get_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _get_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


@dataclass
class Settings:
    """Settings shared by the master and the workers."""
    transport: str = "ssh"
    ssh_command: str = "ssh"
    ssh_options: List[str] = field(default_factory=lambda: ["-o", "BatchMode=yes"])
    worker_command: List[str] = field(
        default_factory=lambda: ["python3", "-m", "ssh_wordcount.worker"])
    probe_command: List[str] = field(default_factory=lambda: ["echo", "alive"])
    queue_capacity: int = DEFAULT_QUEUE_CAPACITY
    poll_interval: float = 0.005
    work_dir: str = field(default_factory=os.getcwd)
    result_file: str = DEFAULT_RESULT_FILE
    metrics_file: Optional[str] = None
    log_level: str = "INFO"
    stop_words_file: Optional[str] = None
    map_threads: Optional[int] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from WORDCOUNT_* environment variables."""
        transport = os.environ.get("WORDCOUNT_TRANSPORT", "ssh").lower()
        if transport not in ("ssh", "local"):
            raise ValueError(f"WORDCOUNT_TRANSPORT must be 'ssh' or 'local', got {transport!r}")

        settings = cls(
            transport=transport,
            ssh_command=os.environ.get("WORDCOUNT_SSH_COMMAND", "ssh"),
            queue_capacity=_get_int("WORDCOUNT_QUEUE_CAPACITY", DEFAULT_QUEUE_CAPACITY),
            poll_interval=_get_float("WORDCOUNT_POLL_INTERVAL", 0.005),
            work_dir=os.path.abspath(os.environ.get("WORDCOUNT_WORK_DIR", os.getcwd())),
            result_file=os.environ.get("WORDCOUNT_RESULT_FILE", DEFAULT_RESULT_FILE),
            metrics_file=os.environ.get("WORDCOUNT_METRICS_FILE") or None,
            log_level=os.environ.get("WORDCOUNT_LOG_LEVEL", "INFO").upper(),
            stop_words_file=os.environ.get("WORDCOUNT_STOP_WORDS_FILE") or None,
        )

        if "WORDCOUNT_SSH_OPTIONS" in os.environ:
            settings.ssh_options = shlex.split(os.environ["WORDCOUNT_SSH_OPTIONS"])
        if os.environ.get("WORDCOUNT_WORKER_COMMAND"):
            settings.worker_command = shlex.split(os.environ["WORDCOUNT_WORKER_COMMAND"])
        if os.environ.get("WORDCOUNT_PROBE_COMMAND"):
            settings.probe_command = shlex.split(os.environ["WORDCOUNT_PROBE_COMMAND"])
        if os.environ.get("WORDCOUNT_MAP_THREADS"):
            settings.map_threads = _get_int("WORDCOUNT_MAP_THREADS", 1)

        if not isinstance(logging.getLevelName(settings.log_level), int):
            raise ValueError(f"WORDCOUNT_LOG_LEVEL is not a logging level: {settings.log_level!r}")
        return settings


def configure_logging(level: str = "INFO"):
    """Send log records to stderr; stdout is reserved for the worker wire protocol."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
