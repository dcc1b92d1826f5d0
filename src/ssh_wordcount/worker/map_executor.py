"""
Map Task Executor
Splits one input shard across local CPU cores, tokenizes every slice,
writes `word 1` pairs to the intermediate file and streams new words to stdout
"""

import os
import sys
import time
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, TextIO

import psutil

from ssh_wordcount.common.protocol import MAP_MODE, sentinel
from ssh_wordcount.worker.tokenizer import Tokenizer

logger = logging.getLogger(__name__)

WHITESPACE = b" \t\n\r\x0b\x0c"


def compute_offsets(file_size: int, num_slices: int) -> List[int]:
    """Return num_slices + 1 evenly spaced byte offsets covering the file."""
    return [i * file_size // num_slices for i in range(num_slices + 1)]


def default_thread_count() -> int:
    return psutil.cpu_count(logical=True) or 1


class MapExecutor:
    """Executes a single map job on a worker"""

    def __init__(self, output_path: str, input_path: str,
                 tokenizer: Optional[Tokenizer] = None,
                 num_threads: Optional[int] = None,
                 stdout: Optional[TextIO] = None):
        """
        Initialize the map executor

        Args:
            output_path: Intermediate file receiving one `word 1` line per token
            input_path: Input shard to map
            tokenizer: Tokenizer to apply, defaults to the built-in stop words
            num_threads: Number of slices, defaults to the logical CPU count
            stdout: Stream receiving the protocol lines, defaults to sys.stdout
        """
        self.output_path = output_path
        self.input_path = input_path
        self.tokenizer = tokenizer or Tokenizer()
        self.num_threads = num_threads or default_thread_count()
        self.stdout = stdout if stdout is not None else sys.stdout

        self._input_lock = threading.Lock()
        self._output_lock = threading.Lock()
        self._stdout_lock = threading.Lock()

    def execute(self) -> dict:
        """
        Execute the map job and emit the sentinel once every slice has finished

        Returns:
            Dictionary with 'success', 'execution_time_ms', 'error_message',
            'tokens' and 'failed_slices' fields

        Raises:
            OSError: If the input cannot be read or the output cannot be created.
                No sentinel is emitted in that case.
        """
        start_time = time.time()

        file_size = os.path.getsize(self.input_path)
        offsets = compute_offsets(file_size, self.num_threads)
        logger.info(f"Map job: {self.input_path} ({file_size} bytes) -> {self.output_path}, "
                    f"{self.num_threads} slices")

        tokens = 0
        errors = []
        with open(self.input_path, 'rb') as in_f, \
                open(self.output_path, 'w', encoding='utf-8') as out_f:
            with ThreadPoolExecutor(max_workers=self.num_threads) as executor:
                futures = [
                    executor.submit(self._map_slice, i, offsets[i], offsets[i + 1], in_f, out_f)
                    for i in range(self.num_threads)
                ]
                for i, future in enumerate(futures):
                    try:
                        tokens += future.result()
                    except Exception as e:
                        logger.exception(f"Map slice {i} failed")
                        errors.append(f"slice {i}: {e}")

        self._emit(sentinel(MAP_MODE))

        execution_time = int((time.time() - start_time) * 1000)
        rss = psutil.Process().memory_info().rss
        logger.info(f"Map job completed in {execution_time}ms: {tokens} tokens, "
                    f"{len(errors)} failed slices, rss={rss} bytes")

        return {
            'success': not errors,
            'execution_time_ms': execution_time,
            'error_message': '; '.join(errors),
            'tokens': tokens,
            'failed_slices': len(errors),
        }

    def _map_slice(self, index: int, start: int, end: int, in_f, out_f) -> int:
        """Tokenize one slice, write its pairs and stream its new words."""
        data = self._read_slice(in_f, start, end)
        words = self.tokenizer.tokenize(data)

        if words:
            pairs = ''.join(f"{word} 1\n" for word in words)
            with self._output_lock:
                out_f.write(pairs)
            # dict keeps first-seen order
            self._emit(*dict.fromkeys(words))

        logger.debug(f"Map slice {index} [{start}, {end}): {len(words)} tokens")
        return len(words)

    def _read_slice(self, in_f, start: int, end: int) -> bytes:
        """
        Read [start, end) widened to whitespace so that no word is cut

        A word crossing `start` belongs to the previous slice, a word crossing
        `end` belongs to this one.
        """
        begin = max(start - 1, 0)
        with self._input_lock:
            in_f.seek(begin)
            buffer = in_f.read(end - begin)
            if not buffer:
                return b''

            if start > 0:
                offset = next((i for i, b in enumerate(buffer) if b in WHITESPACE), None)
                if offset is None:
                    # the whole range sits inside a word owned by an earlier slice
                    return b''
                buffer = buffer[offset:]

            if buffer[-1] not in WHITESPACE:
                extra = bytearray()
                while True:
                    byte = in_f.read(1)
                    if not byte or byte in WHITESPACE:
                        break
                    extra += byte
                buffer += bytes(extra)

        return buffer

    def _emit(self, *lines: str):
        if not lines:
            return
        with self._stdout_lock:
            self.stdout.write(''.join(f"{line}\n" for line in lines))
            self.stdout.flush()
