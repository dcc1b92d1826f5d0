"""
Worker entry point.
Runs one map (SXUMX) or reduce (UMXRMX) job and streams the result on stdout.
"""

import sys
import logging
from typing import List, Optional

from ssh_wordcount.config import Settings, configure_logging
from ssh_wordcount.common.cli import ArgumentParser
from ssh_wordcount.common.protocol import MAP_MODE, REDUCE_MODE, unpack_paths
from ssh_wordcount.worker.tokenizer import Tokenizer
from ssh_wordcount.worker.map_executor import MapExecutor
from ssh_wordcount.worker.reduce_executor import ReduceExecutor, read_keys

logger = logging.getLogger(__name__)


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog='ssh-wordcount-worker',
                            description='Word count worker, driven by the master over ssh')
    modes = parser.add_subparsers(dest='mode', metavar='MODE', required=True)

    map_parser = modes.add_parser(MAP_MODE, help='Map an input shard to word/1 pairs')
    map_parser.add_argument('output', help='Intermediate file to write')
    map_parser.add_argument('input', help='Input shard to read')

    reduce_parser = modes.add_parser(REDUCE_MODE, help='Count keys across intermediate shards')
    reduce_parser.add_argument('output', help='Final shard to write')
    reduce_parser.add_argument('inputs', help='Intermediate shards joined by ___')
    reduce_parser.add_argument('keys_file', help='File with one key per line')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"ssh-wordcount-worker: {e}", file=sys.stderr)
        return 1
    configure_logging(settings.log_level)

    try:
        if args.mode == MAP_MODE:
            if settings.stop_words_file:
                tokenizer = Tokenizer.from_file(settings.stop_words_file)
            else:
                tokenizer = Tokenizer()
            executor = MapExecutor(args.output, args.input, tokenizer=tokenizer,
                                   num_threads=settings.map_threads)
        else:
            executor = ReduceExecutor(args.output, unpack_paths(args.inputs),
                                      read_keys(args.keys_file))
        result = executor.execute()
    except OSError as e:
        logger.error(f"{args.mode} job aborted: {e}")
        return 1

    if not result['success']:
        logger.error(f"{args.mode} job finished with errors: {result['error_message']}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
