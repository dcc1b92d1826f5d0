"""
Remote Job Management
Launches worker jobs through the transport, buffers their streamed stdout in
bounded queues and tracks them until their sentinel line is read
"""

import os
import time
import queue
import logging
import threading
from collections import deque
from enum import Enum
from dataclasses import dataclass
from typing import Callable, ClassVar, List, Optional, Union

from ssh_wordcount.common.protocol import MAP_MODE, REDUCE_MODE, pack_paths, sentinel
from ssh_wordcount.common.transport import Transport, terminate_process_tree
from ssh_wordcount.coordinator.errors import JobFailedError

logger = logging.getLogger(__name__)

STDERR_TAIL_LINES = 20


class JobState(Enum):
    """Lifecycle of a remote job"""
    PENDING = "pending"
    RUNNING = "running"
    ENDED = "ended"


@dataclass
class MapJob:
    """SXUMX job: map one input shard into one intermediate shard"""
    mode: ClassVar[str] = MAP_MODE

    address: str
    output_path: str
    input_path: str

    def arguments(self) -> List[str]:
        return [self.mode, self.output_path, self.input_path]


@dataclass
class ReduceJob:
    """UMXRMX job: count a key partition across intermediate shards"""
    mode: ClassVar[str] = REDUCE_MODE

    address: str
    output_path: str
    input_paths: List[str]
    keys: List[str]
    keys_path: str

    def arguments(self) -> List[str]:
        return [self.mode, self.output_path, pack_paths(self.input_paths), self.keys_path]

    def write_keys(self):
        with open(self.keys_path, 'w', encoding='utf-8') as f:
            for key in self.keys:
                f.write(key + '\n')

    def remove_keys(self):
        if os.path.exists(self.keys_path):
            os.remove(self.keys_path)


JobSpec = Union[MapJob, ReduceJob]


class RemoteJob:
    """One worker invocation and the bounded queue of its stdout lines"""

    def __init__(self, spec: JobSpec, transport: Transport, worker_command: List[str],
                 capacity: int):
        """
        Args:
            spec: What to run and where
            transport: Used to start the worker on spec.address
            worker_command: Command prefix that starts the worker entry point
            capacity: Maximum number of buffered stdout lines
        """
        self.spec = spec
        self.transport = transport
        self.worker_command = list(worker_command)
        self.queue: "queue.Queue[str]" = queue.Queue(maxsize=capacity)
        self.state = JobState.PENDING
        self.process = None
        self.stderr_tail = deque(maxlen=STDERR_TAIL_LINES)

        self._eof = threading.Event()
        self._stop = threading.Event()
        self._stdout_reader: Optional[threading.Thread] = None
        self._stderr_reader: Optional[threading.Thread] = None

    @property
    def address(self) -> str:
        return self.spec.address

    @property
    def mode(self) -> str:
        return self.spec.mode

    @property
    def ended(self) -> bool:
        return self.state == JobState.ENDED

    @property
    def failed_without_sentinel(self) -> bool:
        """True once stdout is closed and fully consumed but no sentinel was seen."""
        return not self.ended and self._eof.is_set() and self.queue.empty()

    def start(self):
        """
        Spawn the worker and the background readers

        Raises:
            JobFailedError: If the transport cannot be started
        """
        if isinstance(self.spec, ReduceJob):
            self.spec.write_keys()

        argv = self.worker_command + self.spec.arguments()
        try:
            self.process = self.transport.spawn(self.address, argv)
        except OSError as e:
            raise JobFailedError(self.address, self.mode, f"cannot start transport: {e}") from e

        self.state = JobState.RUNNING
        self._stdout_reader = threading.Thread(
            target=self._read_stdout, name=f"{self.mode}-stdout-{self.address}", daemon=True)
        self._stderr_reader = threading.Thread(
            target=self._read_stderr, name=f"{self.mode}-stderr-{self.address}", daemon=True)
        self._stdout_reader.start()
        self._stderr_reader.start()
        logger.debug(f"Started {self.mode} job on {self.address}: {argv}")

    def _read_stdout(self):
        try:
            for line in self.process.stdout:
                if not self._enqueue(line.rstrip('\n')):
                    break
        except (OSError, ValueError) as e:
            logger.warning(f"Reading output of {self.mode} job on {self.address} failed: {e}")
        finally:
            self._eof.set()

    def _enqueue(self, line: str) -> bool:
        """Block while the queue is full, giving up once the job is closed."""
        while not self._stop.is_set():
            try:
                self.queue.put(line, timeout=0.1)
                return True
            except queue.Full:
                continue
        return False

    def _read_stderr(self):
        try:
            for line in self.process.stderr:
                line = line.rstrip('\n')
                self.stderr_tail.append(line)
                logger.debug(f"[{self.address}] {line}")
        except (OSError, ValueError):
            pass

    def poll(self) -> Optional[str]:
        """Take the next buffered line without blocking, or None."""
        try:
            return self.queue.get_nowait()
        except queue.Empty:
            return None

    def mark_ended(self):
        self.state = JobState.ENDED

    def failure(self, reason: str) -> JobFailedError:
        """Build a JobFailedError carrying the last lines the worker logged."""
        if self._stderr_reader is not None:
            self._stderr_reader.join(timeout=1.0)
        if self.stderr_tail:
            reason += "\n" + "\n".join(self.stderr_tail)
        return JobFailedError(self.address, self.mode, reason)

    def join(self):
        """
        Wait for the worker to exit

        Raises:
            JobFailedError: If the worker exited with a non-zero status
        """
        discarded = 0
        while self._stdout_reader.is_alive() or not self.queue.empty():
            try:
                self.queue.get(timeout=0.1)
                discarded += 1
            except queue.Empty:
                pass
        if discarded:
            logger.warning(f"Discarded {discarded} lines after the sentinel of "
                           f"{self.mode} job on {self.address}")

        returncode = self.process.wait()
        if returncode != 0:
            raise self.failure(f"exited with status {returncode}")
        logger.debug(f"{self.mode} job on {self.address} exited cleanly")

    def _discard_buffered(self):
        while True:
            try:
                self.queue.get_nowait()
            except queue.Empty:
                return

    def close(self):
        """Release the process, its readers and any key file"""
        self._stop.set()
        if self.process is not None:
            terminate_process_tree(self.process)
            self._discard_buffered()
            for reader in (self._stdout_reader, self._stderr_reader):
                if reader is not None:
                    reader.join(timeout=1.0)
            for stream in (self.process.stdout, self.process.stderr):
                if stream is not None:
                    stream.close()
        if isinstance(self.spec, ReduceJob):
            self.spec.remove_keys()


def drain_jobs(jobs: List[RemoteJob], handle_line: Callable[[RemoteJob, str], None],
               poll_interval: float, batch_size: int = 1000):
    """
    Consume job output until every job has emitted its sentinel

    Args:
        jobs: Started jobs
        handle_line: Called with (job, line) for every non-sentinel line
        poll_interval: Seconds to sleep after a sweep that yielded no line
        batch_size: Maximum lines taken from one job per sweep

    Raises:
        JobFailedError: If a job closes its output without a sentinel
    """
    pending = [job for job in jobs if not job.ended]
    while pending:
        progressed = False
        for job in pending:
            end_line = sentinel(job.mode)
            for _ in range(batch_size):
                line = job.poll()
                if line is None:
                    if job.failed_without_sentinel:
                        raise job.failure(f"output ended before '{end_line}'")
                    break
                progressed = True
                if line == end_line:
                    job.mark_ended()
                    logger.info(f"{job.mode} job on {job.address} ended")
                    break
                handle_line(job, line)

        pending = [job for job in pending if not job.ended]
        if pending and not progressed:
            time.sleep(poll_interval)
