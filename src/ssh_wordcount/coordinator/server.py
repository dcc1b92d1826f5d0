"""
Master entry point.
Counts the words of an input file over the workers listed in an addresses file.
"""

import sys
import logging
from typing import List, Optional

from ssh_wordcount.config import Settings, configure_logging
from ssh_wordcount.common.cli import ArgumentParser
from ssh_wordcount.common.transport import get_transport
from ssh_wordcount.coordinator.errors import PipelineError
from ssh_wordcount.coordinator.pipeline import Pipeline

logger = logging.getLogger(__name__)


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog='ssh-wordcount',
        description='Distributed word count over ssh workers')
    parser.add_argument('input_file', help='Text file to count')
    parser.add_argument('addresses_file', help='Worker addresses, one per line')
    parser.add_argument('timeout_ms', type=int, help='Liveness probe timeout in milliseconds')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.timeout_ms < 0:
        parser.error("timeout_ms must not be negative")

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"ssh-wordcount: {e}", file=sys.stderr)
        return 1
    configure_logging(settings.log_level)

    pipeline = Pipeline(args.input_file, args.addresses_file, args.timeout_ms,
                        settings=settings, transport=get_transport(settings))
    try:
        result = pipeline.run()
    except PipelineError as e:
        logger.error(str(e))
        return 1
    except (OSError, ValueError) as e:
        logger.error(f"Word count failed: {e}", exc_info=True)
        return 1

    logger.info(f"Done: {len(result)} words in {pipeline.result_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
