"""
Remote Shell Transport
Builds and spawns the command lines that run a worker on a given host
"""

import os
import shlex
import logging
import subprocess
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import psutil

from ssh_wordcount.config import Settings

logger = logging.getLogger(__name__)


class Transport(ABC):
    """Runs a command on a host and exposes its stdout/stderr as text streams"""

    @abstractmethod
    def command(self, address: str, argv: List[str]) -> List[str]:
        """
        Build the local command line that runs argv on address

        Args:
            address: Worker address
            argv: Command to run on the worker

        Returns:
            List of arguments suitable for subprocess.Popen
        """

    def environment(self) -> Optional[Dict[str, str]]:
        return None

    def spawn(self, address: str, argv: List[str]) -> subprocess.Popen:
        """
        Start argv on address with piped, line-buffered text output

        Raises:
            OSError: If the transport executable cannot be started
        """
        cmd = self.command(address, argv)
        logger.debug(f"Spawning on {address}: {cmd}")
        return subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding='utf-8',
            errors='replace',
            bufsize=1,
            env=self.environment(),
        )


class SSHTransport(Transport):
    """Runs commands through `ssh <address> <remote-command>`"""

    def __init__(self, ssh_command: str = "ssh", options: Optional[List[str]] = None):
        self.ssh_command = ssh_command
        self.options = list(options) if options is not None else []

    def command(self, address: str, argv: List[str]) -> List[str]:
        return [self.ssh_command, *self.options, address, shlex.join(argv)]


class LocalTransport(Transport):
    """Runs commands as local subprocesses, ignoring the address"""

    def __init__(self, env: Optional[Dict[str, str]] = None):
        self.env = env

    def command(self, address: str, argv: List[str]) -> List[str]:
        return list(argv)

    def environment(self) -> Optional[Dict[str, str]]:
        if self.env is None:
            return None
        merged = dict(os.environ)
        merged.update(self.env)
        return merged


def get_transport(settings: Settings) -> Transport:
    """Create the transport selected by the settings"""
    if settings.transport == "local":
        return LocalTransport()
    return SSHTransport(settings.ssh_command, settings.ssh_options)


def terminate_process_tree(proc: subprocess.Popen, timeout: float = 3.0):
    """
    Stop a transport process and everything it started

    Args:
        proc: Process returned by Transport.spawn
        timeout: Seconds to wait after SIGTERM before sending SIGKILL
    """
    if proc.poll() is not None:
        return
    try:
        children = psutil.Process(proc.pid).children(recursive=True)
    except psutil.NoSuchProcess:
        children = []

    for child in children:
        try:
            child.terminate()
        except psutil.NoSuchProcess:
            pass
    proc.terminate()

    _, alive = psutil.wait_procs(children, timeout=timeout)
    for child in alive:
        try:
            child.kill()
        except psutil.NoSuchProcess:
            pass
    try:
        proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        logger.warning(f"Process {proc.pid} ignored SIGTERM, killing it")
        proc.kill()
        proc.wait()
