"""
Wire protocol shared by the master and the workers.
Workers stream plain text lines on stdout; the last line is a sentinel.
"""

from typing import Iterable, List, Tuple

MAP_MODE = "SXUMX"
REDUCE_MODE = "UMXRMX"
MODES = (MAP_MODE, REDUCE_MODE)

# Reserved separator for packing several paths into one argument.
SEPARATOR = "___"


def sentinel(mode: str) -> str:
    """Return the line that marks the logical end of a job in the given mode."""
    if mode not in MODES:
        raise ValueError(f"Mode must be in {list(MODES)}, got {mode!r}")
    return f"END OF PROCESS {mode}"


def pack_paths(paths: Iterable[str]) -> str:
    """Join paths into a single argument."""
    paths = list(paths)
    for path in paths:
        if SEPARATOR in path:
            raise ValueError(f"Path must not contain {SEPARATOR!r}: {path}")
    return SEPARATOR.join(paths)


def unpack_paths(packed: str) -> List[str]:
    """Split an argument produced by pack_paths, dropping empty fields."""
    return [p for p in packed.split(SEPARATOR) if p]


def format_count(key: str, count: int) -> str:
    return f"{key} {count}"


def parse_count(line: str) -> Tuple[str, int]:
    """
    Parse a reducer output line of the form '<key> <count>'.

    Raises:
        ValueError: If the line is not a key followed by a decimal count
    """
    parts = line.split()
    if len(parts) != 2:
        raise ValueError(f"Expected '<key> <count>', got {line!r}")
    key, count = parts
    if not (count.isascii() and count.isdigit()):
        raise ValueError(f"Count is not a decimal number in {line!r}")
    return key, int(count)
