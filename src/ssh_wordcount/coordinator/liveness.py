"""
Liveness Probe
Opens a trivial remote shell session to every candidate worker at once and
keeps the ones that answer before the timeout
"""

import time
import logging
import threading
from typing import Dict, List

from ssh_wordcount.common.transport import Transport, terminate_process_tree

logger = logging.getLogger(__name__)


def read_addresses(path: str) -> List[str]:
    """
    Read candidate worker addresses, one per line

    Blank lines are ignored and repeated addresses are kept once, at their
    first position.
    """
    addresses = []
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            address = line.strip()
            if not address:
                continue
            if address in addresses:
                logger.warning(f"Duplicate address {address} ignored")
                continue
            addresses.append(address)
    return addresses


class LivenessProbe:
    """Probes a list of addresses concurrently under one global timeout"""

    def __init__(self, transport: Transport, probe_command: List[str]):
        self.transport = transport
        self.probe_command = list(probe_command)

        self._lock = threading.Lock()
        self._processes: Dict[str, object] = {}
        self._alive: Dict[str, bool] = {}
        self._expired = False
        self._deadline = 0.0

    def run(self, addresses: List[str], timeout_ms: int) -> List[str]:
        """
        Probe every address and wait exactly timeout_ms

        Args:
            addresses: Candidate addresses
            timeout_ms: Time given to all probes together

        Returns:
            Addresses that produced a line of output in time, in input order
        """
        self._deadline = time.monotonic() + timeout_ms / 1000.0
        threads = [
            threading.Thread(target=self._probe, args=(address,),
                             name=f"probe-{address}", daemon=True)
            for address in addresses
        ]
        for thread in threads:
            thread.start()

        time.sleep(timeout_ms / 1000.0)

        with self._lock:
            self._expired = True
            processes = list(self._processes.values())
        for proc in processes:
            terminate_process_tree(proc)
        for thread in threads:
            thread.join(timeout=1.0)
        for proc in processes:
            for stream in (proc.stdout, proc.stderr):
                if stream is not None:
                    stream.close()

        with self._lock:
            alive = dict(self._alive)
        live = []
        for address in addresses:
            ok = alive.get(address, False)
            logger.info(f"Connection with {address} : {'Success' if ok else 'Failed'}")
            if ok:
                live.append(address)
        return live

    def _probe(self, address: str):
        try:
            proc = self.transport.spawn(address, self.probe_command)
        except OSError as e:
            logger.warning(f"Cannot probe {address}: {e}")
            return

        with self._lock:
            if self._expired:
                late = True
            else:
                late = False
                self._processes[address] = proc
        if late:
            terminate_process_tree(proc)
            proc.stdout.close()
            proc.stderr.close()
            return

        try:
            line = proc.stdout.readline()
        except (OSError, ValueError):
            return
        if line and time.monotonic() <= self._deadline:
            with self._lock:
                self._alive[address] = True


def probe_workers(addresses: List[str], timeout_ms: int, transport: Transport,
                  probe_command: List[str]) -> List[str]:
    """Return the live subset of addresses, see LivenessProbe.run."""
    return LivenessProbe(transport, probe_command).run(addresses, timeout_ms)
