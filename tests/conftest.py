"""
Pytest configuration and shared fixtures
"""

import pytest
import os
import sys
import tempfile
import shutil

from ssh_wordcount.config import Settings
from ssh_wordcount.common.transport import LocalTransport

SRC_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def sample_text():
    """Sample text for testing"""
    return """The quick brown fox jumps over the lazy dog.
The dog was really lazy.
The fox was very quick and brown.
Quick brown foxes are amazing animals.
Lazy dogs sleep all day."""


@pytest.fixture
def sample_input_file(temp_dir, sample_text):
    """Create a sample input file for testing"""
    filepath = os.path.join(temp_dir, 'input.txt')
    with open(filepath, 'w') as f:
        f.write(sample_text)
    return filepath


@pytest.fixture
def worker_env():
    """Environment that lets subprocesses import ssh_wordcount from the source tree"""
    pythonpath = os.environ.get('PYTHONPATH')
    return {
        'PYTHONPATH': SRC_DIR if not pythonpath else SRC_DIR + os.pathsep + pythonpath,
        'WORDCOUNT_MAP_THREADS': '2',
    }


@pytest.fixture
def local_transport(worker_env):
    """Transport running every job as a local subprocess"""
    return LocalTransport(env=worker_env)


@pytest.fixture
def local_settings(temp_dir):
    """Settings for a single-host run rooted in temp_dir"""
    return Settings(
        transport='local',
        worker_command=[sys.executable, '-m', 'ssh_wordcount.worker'],
        probe_command=[sys.executable, '-c', 'print("alive")'],
        poll_interval=0.001,
        work_dir=temp_dir,
    )
