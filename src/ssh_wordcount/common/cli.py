"""
Command line helpers shared by the master and worker entry points
"""

import sys
import argparse


class ArgumentParser(argparse.ArgumentParser):
    """argparse parser that exits with status 1 on usage errors"""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")
