"""MapReduce word count over a pool of hosts reachable by a remote shell."""

__version__ = "0.1.0"
