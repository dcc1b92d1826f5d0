"""
Errors raised by the master when the pipeline cannot complete.
"""


class PipelineError(RuntimeError):
    """Base class for fatal pipeline conditions."""


class NoLiveWorkersError(PipelineError):
    """No candidate address answered the liveness probe in time."""


class JobFailedError(PipelineError):
    """A remote job exited non-zero or closed its output before its sentinel."""

    def __init__(self, address: str, mode: str, reason: str):
        super().__init__(f"{mode} job on {address} failed: {reason}")
        self.address = address
        self.mode = mode
        self.reason = reason


class ReduceOutputError(PipelineError):
    """A reducer emitted a line that is not '<key> <count>'."""
