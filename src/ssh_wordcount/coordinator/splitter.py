"""
Input Splitter
Cuts the input file into one shard per live worker, only at spaces
"""

import os
import logging
from typing import List

logger = logging.getLogger(__name__)


def block_size(file_size: int, num_shards: int) -> int:
    """Bytes read for each shard before extending it to the next space."""
    return -(-file_size // num_shards) + 1


def split_input_file(input_path: str, num_shards: int, out_dir: str) -> List[str]:
    """
    Split the input into exactly num_shards files named S_<i>.txt

    Each shard takes one block of bytes and then grows one byte at a time up
    to the next space, which is dropped. Joining the shards with one space in
    between gives back the input, and no word is cut. Trailing shards may be
    empty.

    Args:
        input_path: File to split
        num_shards: Number of shards, at least 1
        out_dir: Directory receiving the shard files

    Returns:
        Paths of the shard files, in shard order
    """
    if num_shards < 1:
        raise ValueError(f"Number of shards must be at least 1, got {num_shards}")

    file_size = os.path.getsize(input_path)
    block = block_size(file_size, num_shards)
    logger.info(f"Splitting {input_path} ({file_size} bytes) into {num_shards} shards")

    paths = []
    with open(input_path, 'rb') as f:
        for i in range(num_shards):
            data = bytearray(f.read(block))
            while True:
                byte = f.read(1)
                if not byte or byte == b' ':
                    break
                data += byte

            path = os.path.join(out_dir, f"S_{i}.txt")
            with open(path, 'wb') as out:
                out.write(data)
            logger.info(f"-> wrote file S_{i}.txt")
            paths.append(path)
    return paths
