"""
Pipeline
Drives probe, split, map, shuffle, reduce and assemble over the live workers
and writes the final word count, sorted by decreasing count
"""

import os
import logging
from urllib.parse import quote
from typing import Dict, List, Optional, Tuple

from ssh_wordcount.config import Settings
from ssh_wordcount.common.protocol import parse_count
from ssh_wordcount.common.transport import Transport, get_transport
from ssh_wordcount.coordinator.errors import NoLiveWorkersError, ReduceOutputError
from ssh_wordcount.coordinator.job_manager import MapJob, ReduceJob, RemoteJob, drain_jobs
from ssh_wordcount.coordinator.liveness import probe_workers, read_addresses
from ssh_wordcount.coordinator.metrics import PipelineMetrics, total_size
from ssh_wordcount.coordinator.shuffle import KeyIndex, ReducePartition, partition_keys
from ssh_wordcount.coordinator.splitter import split_input_file

logger = logging.getLogger(__name__)

SHARD_DIR = "Sx"
INTERMEDIATE_DIR = "UMx"
KEYS_DIR = "Keys"
FINAL_DIR = "RMx"
WORK_DIRS = (SHARD_DIR, INTERMEDIATE_DIR, KEYS_DIR, FINAL_DIR)

def address_to_filename(address: str) -> str:
    """
    Percent-encode an address for use inside a file name

    The encoding is one-to-one, so distinct workers never share a UM, RM or
    Keys file.
    """
    return quote(address, safe="@.-")


def sort_histogram(histogram: Dict[str, int]) -> List[Tuple[str, int]]:
    """Order by decreasing count, ties by word."""
    return sorted(histogram.items(), key=lambda item: (-item[1], item[0]))


class Pipeline:
    """One word count run over the workers listed in an addresses file"""

    def __init__(self, input_path: str, addresses_path: str, timeout_ms: int,
                 settings: Optional[Settings] = None,
                 transport: Optional[Transport] = None):
        """
        Args:
            input_path: Text file to count
            addresses_path: Candidate worker addresses, one per line
            timeout_ms: Liveness probe timeout
            settings: Runtime settings, read from the environment by default
            transport: How workers are reached, derived from settings by default
        """
        self.input_path = os.path.abspath(input_path)
        self.addresses_path = addresses_path
        self.timeout_ms = timeout_ms
        self.settings = settings or Settings.from_env()
        self.transport = transport or get_transport(self.settings)
        self.work_dir = os.path.abspath(self.settings.work_dir)
        self.metrics = PipelineMetrics()

        self._jobs: List[RemoteJob] = []

    def path(self, directory: str, prefix: str, name: str) -> str:
        return os.path.join(self.work_dir, directory, f"{prefix}_{name}.txt")

    @property
    def result_path(self) -> str:
        return os.path.join(self.work_dir, self.settings.result_file)

    def run(self) -> List[Tuple[str, int]]:
        """
        Execute every phase in sequence and write the result file

        Returns:
            The sorted (word, count) pairs that were written

        Raises:
            FileNotFoundError: If the input or addresses file does not exist
            NoLiveWorkersError: If no worker answered the probe
            JobFailedError: If a remote job failed
            ReduceOutputError: If a reducer emitted an unparseable line
        """
        if not os.path.isfile(self.input_path):
            raise FileNotFoundError(f"Input file not found: {self.input_path}")

        self.metrics.start()
        self.metrics.input_size_bytes = os.path.getsize(self.input_path)
        try:
            self.prepare_work_dirs()

            with self.metrics.phase("probe"):
                workers = self.probe()
            with self.metrics.phase("split"):
                shards = split_input_file(self.input_path, len(workers),
                                          os.path.join(self.work_dir, SHARD_DIR))
            with self.metrics.phase("map"):
                index = self.map_phase(workers, shards)
            with self.metrics.phase("shuffle"):
                partitions = partition_keys(index, workers)
            with self.metrics.phase("reduce"):
                histogram = self.reduce_phase(partitions)
            with self.metrics.phase("assemble"):
                result = self.assemble(histogram)
        finally:
            self.close()

        self.metrics.finish()
        if self.settings.metrics_file:
            self.metrics.save_to_file(self.settings.metrics_file)
            logger.info(f"Metrics saved to {self.settings.metrics_file}")
        return result

    def prepare_work_dirs(self):
        for directory in WORK_DIRS:
            os.makedirs(os.path.join(self.work_dir, directory), exist_ok=True)

    def probe(self) -> List[str]:
        addresses = read_addresses(self.addresses_path)
        self.metrics.num_candidates = len(addresses)
        workers = probe_workers(addresses, self.timeout_ms, self.transport,
                                self.settings.probe_command)
        if not workers:
            raise NoLiveWorkersError(
                f"None of the {len(addresses)} workers in {self.addresses_path} "
                f"answered within {self.timeout_ms}ms")
        self.metrics.num_workers = len(workers)
        logger.info(f"{len(workers)} live workers: {', '.join(workers)}")
        return workers

    def start_job(self, spec) -> RemoteJob:
        job = RemoteJob(spec, self.transport, self.settings.worker_command,
                        self.settings.queue_capacity)
        self._jobs.append(job)
        job.start()
        return job

    def map_phase(self, workers: List[str], shards: List[str]) -> KeyIndex:
        """Run one map job per worker and index the words they stream back."""
        index = KeyIndex()
        jobs = [
            self.start_job(MapJob(worker,
                                  self.path(INTERMEDIATE_DIR, "UM", address_to_filename(worker)),
                                  shard))
            for worker, shard in zip(workers, shards)
        ]

        def record_word(job: RemoteJob, line: str):
            word = line.strip()
            if word:
                index.add(word, job.spec.output_path)

        drain_jobs(jobs, record_word, self.settings.poll_interval)
        for job in jobs:
            job.join()
            logger.info(f"-> wrote file {job.spec.output_path}")

        self.metrics.num_keys = len(index)
        self.metrics.intermediate_size_bytes = total_size(job.spec.output_path for job in jobs)
        logger.info(f"{len(index)} different words were found")
        return index

    def reduce_phase(self, partitions: List[ReducePartition]) -> Dict[str, int]:
        """Run one reduce job per non-empty partition and collect the counts."""
        histogram: Dict[str, int] = {}
        jobs = []
        for partition in partitions:
            if not partition.keys:
                logger.info(f"No keys for {partition.worker}, reducer not started")
                continue
            name = address_to_filename(partition.worker)
            jobs.append(self.start_job(ReduceJob(
                partition.worker,
                self.path(FINAL_DIR, "RM", name),
                partition.input_shards,
                partition.keys,
                self.path(KEYS_DIR, "Keys", name),
            )))
        self.metrics.num_reducers = len(jobs)

        def record_count(job: RemoteJob, line: str):
            try:
                key, count = parse_count(line)
            except ValueError as e:
                raise ReduceOutputError(f"Reducer on {job.address}: {e}") from e
            histogram[key] = histogram.get(key, 0) + count

        drain_jobs(jobs, record_count, self.settings.poll_interval)
        for job in jobs:
            job.join()
        return histogram

    def assemble(self, histogram: Dict[str, int]) -> List[Tuple[str, int]]:
        """Sort the histogram and write it to the result file."""
        result = sort_histogram(histogram)
        tmp_path = self.result_path + ".tmp"
        with open(tmp_path, 'w', encoding='utf-8') as f:
            for key, count in result:
                f.write(f"{key} {count}\n")
        os.replace(tmp_path, self.result_path)

        self.metrics.output_size_bytes = os.path.getsize(self.result_path)
        logger.info(f"Wrote {len(result)} words to {self.result_path}")
        return result

    def close(self):
        """Release every job started by this run."""
        for job in self._jobs:
            try:
                job.close()
            except Exception:
                logger.exception(f"Failed to clean up {job.mode} job on {job.address}")
        self._jobs = []
