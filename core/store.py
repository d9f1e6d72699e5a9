# core/store.py - the configuration store (read / stage / commit / reset)
#
# Holds the only mutable shared state of the engine. Writes are serialized by
# one lock and replace the whole record in a single backend call; readers get
# the last published immutable snapshot. A failed write leaves both the
# durable record and the snapshot untouched.

from __future__ import annotations

import logging
import random
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FuturesTimeout
from typing import Callable, List, Optional, Tuple, TypeVar

from core.errors import (
    ConfigurationError,
    CorruptConfiguration,
    NoTradeStaged,
    SetupAlreadyCompleted,
    StagedTradeMismatch,
    StorageUnavailable,
    UnknownTrade,
)
from core.journal import NullJournal
from core.model import INITIAL_STATE, ConfigurationState, TradeId
from core.settings import DEFAULT_STORE_TIMEOUT_S
from core.storage import StorageBackend

T = TypeVar("T")
logger = logging.getLogger(__name__)

Listener = Callable[[ConfigurationState], None]


class ConfigurationStore:
    def __init__(self, backend: StorageBackend, *, timeout_s: float = DEFAULT_STORE_TIMEOUT_S,
                 journal=None):
        self._backend = backend
        self._timeout_s = float(timeout_s)
        self._journal = journal or NullJournal()
        self._lock = threading.RLock()
        self._snapshot: Optional[ConfigurationState] = None
        # (future, state, landed) of a write that outlived its timeout
        self._pending: Optional[Tuple[Future, ConfigurationState, Callable[[], None]]] = None
        self._listeners: List[Listener] = []
        # one worker: a storage call that outlives its timeout still runs
        # before any later call, so a reload always sees its outcome
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tradekit-storage")

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    # ------------------------------------------------------------------ #
    #  Storage access
    # ------------------------------------------------------------------ #

    def _call(self, verb: str, fn: Callable[..., T], *args, pending=None) -> T:
        fut = self._executor.submit(fn, *args)
        try:
            return fut.result(timeout=self._timeout_s)
        except FuturesTimeout as e:
            self._snapshot = None
            if pending is not None:
                # outcome unknown until the worker finishes; settled by the next operation
                self._pending = (fut,) + pending
            logger.warning("storage %s timed out after %.2fs (%s)", verb, self._timeout_s, self._backend.name)
            raise StorageUnavailable(
                f"Storage {verb} timed out after {self._timeout_s:g}s; try again", e) from e

    def _settle(self) -> None:
        """
        Resolve a write that timed out earlier. If it landed, its state is
        published and its journal entry and listeners run now; if it failed,
        nothing changed. Still running after another timeout -> StorageUnavailable.
        """
        if self._pending is None:
            return
        fut, state, landed = self._pending
        try:
            err = fut.exception(timeout=self._timeout_s)
        except FuturesTimeout as e:
            raise StorageUnavailable(
                f"An earlier storage write is still running after {self._timeout_s:g}s; try again", e) from e
        self._pending = None
        if err is not None:
            logger.warning("timed-out storage write failed: %s", err)
            return
        logger.info("timed-out storage write landed late (%s)", state.to_dict())
        self._snapshot = state
        landed()

    def _load(self) -> ConfigurationState:
        record = self._call("read", self._backend.load)
        if record is None:
            return INITIAL_STATE
        return ConfigurationState.from_dict(record)

    def _current(self) -> ConfigurationState:
        self._settle()
        snap = self._snapshot
        if snap is None:
            snap = self._load()
            self._snapshot = snap
        return snap

    def _publish(self, state: ConfigurationState, landed: Callable[[], None]) -> None:
        self._call("write", self._backend.save, state.to_dict(), pending=(state, landed))
        self._snapshot = state

    # ------------------------------------------------------------------ #
    #  Contract
    # ------------------------------------------------------------------ #

    def read(self) -> ConfigurationState:
        """
        Current persisted state. Nothing persisted yet -> the initial state
        (no trade, not completed). Never a partially written record.
        """
        snap = self._snapshot
        if snap is not None:
            return snap
        with self._lock:
            return self._current()

    def refresh(self) -> ConfigurationState:
        """Drop the cached snapshot and re-read durable storage."""
        with self._lock:
            self._snapshot = None
            return self._current()

    def stage(self, trade) -> ConfigurationState:
        """
        Record a tentative selection without completing setup. Re-staging
        overwrites; staging the current value again writes nothing.
        """
        tid = TradeId.parse(trade)

        def landed():
            self._journal.record_stage(tid)

        with self._lock:
            current = self._current()
            if current.setup_completed:
                raise SetupAlreadyCompleted()
            staged = ConfigurationState(selected_trade=tid, setup_completed=False)
            if staged == current:
                return current
            self._publish(staged, landed)
            logger.debug("staged trade %s", tid.value)
        landed()
        return staged

    def commit(self, expected=None) -> ConfigurationState:
        """
        Mark setup completed with the currently staged trade.
          - NoTradeStaged when nothing is staged
          - StagedTradeMismatch when `expected` is given and the durable
            staged value differs from it
          - StorageUnavailable when the write fails or times out
        A failed write leaves the persisted record unchanged. A timed-out
        write is undecided until the next store operation settles it; if it
        lands late, the commit is journaled and listeners run at that point.
        """
        want = TradeId.parse(expected) if expected is not None else None
        with self._lock:
            # re-read durable storage; the staged value may predate this process
            self._snapshot = None
            current = self._current()
            if current.selected_trade is None:
                raise NoTradeStaged()
            if want is not None and want is not current.selected_trade:
                raise StagedTradeMismatch(want.value, current.selected_trade.value)
            if current.setup_completed:
                return current
            done = ConfigurationState(selected_trade=current.selected_trade, setup_completed=True)

            def landed():
                self._journal.record_commit(done)
                self._notify(done)

            try:
                self._publish(done, landed)
            except ConfigurationError as e:
                self._journal.record_error("commit", e)
                raise
            logger.info("setup completed for trade %s", done.selected_trade.value)
        landed()
        return done

    def reset(self) -> ConfigurationState:
        """Back to the initial state (re-run setup)."""
        with self._lock:
            try:
                previous = self._current()
            except (CorruptConfiguration, UnknownTrade) as e:
                # an unreadable record is exactly what a reset clears
                logger.warning("resetting unreadable configuration: %s", e)
                previous = None

            def landed():
                self._journal.record_reset(previous)
                self._notify(INITIAL_STATE)

            self._call("write", self._backend.clear, pending=(INITIAL_STATE, landed))
            self._snapshot = INITIAL_STATE
            logger.info("configuration reset (was %s)", previous.to_dict() if previous else "unreadable")
        landed()
        return INITIAL_STATE

    # ------------------------------------------------------------------ #
    #  Listeners
    # ------------------------------------------------------------------ #

    def add_listener(self, callback: Listener) -> Callable[[], None]:
        """Called with the new state after each commit/reset. Returns a remover."""
        self._listeners.append(callback)

        def _remove():
            if callback in self._listeners:
                self._listeners.remove(callback)
        return _remove

    def _notify(self, state: ConfigurationState) -> None:
        for cb in list(self._listeners):
            try:
                cb(state)
            except Exception:
                # the state change is durable already; one listener must not hide it from the rest
                logger.exception("configuration listener %r failed", cb)

    def close(self) -> None:
        self._executor.shutdown(wait=False)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def with_storage_retry(
    fn: Callable[[], T],
    *,
    max_attempts: int = 4,
    base_delay_s: float = 0.2,
    max_delay_s: float = 2.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Retry StorageUnavailable with exponential backoff + full jitter.
    Contract violations (NoTradeStaged, UnknownTrade, ...) are raised at once.
    """
    attempt = 0
    while True:
        try:
            return fn()
        except StorageUnavailable as e:
            if attempt >= (max_attempts - 1):
                raise
            delay = random.uniform(0.0, min(max_delay_s, base_delay_s * (2 ** attempt)))
            logger.warning("storage unavailable (attempt %d/%d): %s; retrying in %.2fs",
                           attempt + 1, max_attempts, e, delay)
            sleep(delay)
            attempt += 1
