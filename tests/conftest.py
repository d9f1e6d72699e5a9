# tests/conftest.py
import os
import threading

import pytest

# Qt widgets under test run without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from core.errors import StorageUnavailable
from core.journal import SetupJournal
from core.settings import load_settings
from core.storage import MemoryBackend, StorageBackend
from core.store import ConfigurationStore


class BlockingBackend(StorageBackend):
    """Memory backend whose save() waits until release() (timeout tests)."""

    name = "blocking"

    def __init__(self):
        self.inner = MemoryBackend()
        self.gate = threading.Event()
        self.entered = threading.Event()
        self.fail_on_release = False

    def release(self):
        self.gate.set()

    def load(self):
        return self.inner.load()

    def save(self, record):
        self.entered.set()
        self.gate.wait(5.0)
        if self.fail_on_release:
            raise StorageUnavailable("disk went away")
        self.inner.save(record)

    def clear(self):
        self.inner.clear()


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend):
    s = ConfigurationStore(backend, timeout_s=2.0)
    yield s
    s.close()


@pytest.fixture
def settings(tmp_path):
    return load_settings(environ={"TRADEKIT_STORE": "json"}, data_dir=str(tmp_path / "data"))


@pytest.fixture
def journal(tmp_path):
    return SetupJournal(str(tmp_path / "journal" / "setup_journal.txt"))


@pytest.fixture
def blocking_backend():
    b = BlockingBackend()
    yield b
    b.release()
