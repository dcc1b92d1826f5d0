"""
Reduce Task Executor
Counts the occurrences of an assigned key set across intermediate shards
and emits one `key count` pair per key
"""

import sys
import time
import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, TextIO

import psutil

from ssh_wordcount.common.protocol import REDUCE_MODE, format_count, sentinel

logger = logging.getLogger(__name__)


def read_keys(keys_path: str) -> List[str]:
    """Read one key per line, skipping blank lines."""
    with open(keys_path, 'r', encoding='utf-8') as f:
        return [line.strip() for line in f if line.strip()]


def count_shard(path: str, keys: frozenset) -> Counter:
    """
    Count the lines of one intermediate shard whose first field is in keys

    Args:
        path: Intermediate shard, one `word 1` pair per line
        keys: Keys to count, anything else is ignored

    Returns:
        Counter mapping key to number of matching lines
    """
    counts = Counter()
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            fields = line.split(None, 1)
            if fields and fields[0] in keys:
                counts[fields[0]] += 1
    return counts


class ReduceExecutor:
    """Executes a single reduce job on a worker"""

    def __init__(self, output_path: str, input_paths: List[str], keys: List[str],
                 stdout: Optional[TextIO] = None):
        """
        Initialize the reduce executor

        Args:
            output_path: Final shard receiving the `key count` lines
            input_paths: Intermediate shards to scan, one counter each
            keys: Keys owned by this reducer, in emission order
            stdout: Stream receiving the protocol lines, defaults to sys.stdout
        """
        self.output_path = output_path
        self.input_paths = input_paths
        self.keys = keys
        self.stdout = stdout if stdout is not None else sys.stdout

    def execute(self) -> dict:
        """
        Execute the reduce job

        Returns:
            Dictionary with 'success', 'execution_time_ms', 'error_message'
            and 'failed_inputs' fields

        Raises:
            OSError: If the output file cannot be written. No sentinel is
                emitted in that case.
        """
        start_time = time.time()
        key_set = frozenset(self.keys)
        logger.info(f"Reduce job: {len(self.keys)} keys over {len(self.input_paths)} shards "
                    f"-> {self.output_path}")

        totals = Counter()
        errors = []
        if self.input_paths:
            with ThreadPoolExecutor(max_workers=len(self.input_paths)) as executor:
                futures = [executor.submit(count_shard, path, key_set)
                           for path in self.input_paths]
                for path, future in zip(self.input_paths, futures):
                    try:
                        totals.update(future.result())
                    except Exception as e:
                        logger.exception(f"Counting {path} failed")
                        errors.append(f"{path}: {e}")

        lines = [format_count(key, totals[key]) for key in self.keys]
        with open(self.output_path, 'w', encoding='utf-8') as f:
            for line in lines:
                f.write(line + '\n')

        for line in lines:
            self.stdout.write(line + '\n')
        self.stdout.write(sentinel(REDUCE_MODE) + '\n')
        self.stdout.flush()

        execution_time = int((time.time() - start_time) * 1000)
        rss = psutil.Process().memory_info().rss
        logger.info(f"Reduce job completed in {execution_time}ms: {len(lines)} keys, "
                    f"{len(errors)} failed shards, rss={rss} bytes")

        return {
            'success': not errors,
            'execution_time_ms': execution_time,
            'error_message': '; '.join(errors),
            'failed_inputs': len(errors),
        }
