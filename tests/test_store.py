# tests/test_store.py
import threading

import pytest

from core.errors import (
    NoTradeStaged,
    SetupAlreadyCompleted,
    StagedTradeMismatch,
    StorageUnavailable,
    UnknownTrade,
)
from core.model import INITIAL_STATE, ConfigurationState, TradeId
from core.storage import MemoryBackend
from core.store import ConfigurationStore, with_storage_retry


def test_fresh_store_reads_initial_state(store):
    assert store.read() == INITIAL_STATE
    assert store.read().to_dict() == {"selectedTrade": None, "setupCompleted": False}


def test_repeated_reads_are_identical(store, backend):
    store.stage(TradeId.HVAC)
    reads = [store.read() for _ in range(10)]
    assert all(r == reads[0] for r in reads)
    # served from the snapshot, not re-loaded each time
    assert backend.calls.count("load") == 1


def test_stage_overwrites_without_completing(store, backend):
    store.stage(TradeId.HVAC)
    store.stage("landscaping")
    assert store.read() == ConfigurationState(TradeId.LANDSCAPING, False)
    assert backend.record == {"selectedTrade": "landscaping", "setupCompleted": False}


def test_staging_the_same_trade_writes_nothing(store, backend):
    store.stage(TradeId.HVAC)
    store.stage(TradeId.HVAC)
    assert backend.calls.count("save") == 1


def test_stage_rejects_unknown_trade(store, backend):
    with pytest.raises(UnknownTrade):
        store.stage("roofing")
    assert backend.record is None


def test_commit_without_stage_fails_and_persists_nothing(store, backend):
    with pytest.raises(NoTradeStaged):
        store.commit()
    assert store.read().setup_completed is False
    assert backend.record is None


def test_commit_completes_the_staged_trade(store, backend):
    store.stage(TradeId.ELECTRICAL)
    done = store.commit()
    assert done == ConfigurationState(TradeId.ELECTRICAL, True)
    assert store.read() == done
    assert backend.record == {"selectedTrade": "electrical", "setupCompleted": True}


def test_commit_is_idempotent_once_completed(store, backend):
    store.stage(TradeId.GENERAL)
    store.commit()
    saves = backend.calls.count("save")
    assert store.commit() == ConfigurationState(TradeId.GENERAL, True)
    assert backend.calls.count("save") == saves


def test_stage_after_completion_requires_reset(store):
    store.stage(TradeId.GENERAL)
    store.commit()
    with pytest.raises(SetupAlreadyCompleted):
        store.stage(TradeId.HVAC)
    store.reset()
    store.stage(TradeId.HVAC)
    assert store.read().is_staged


def test_commit_revalidates_the_durable_staged_value():
    backend = MemoryBackend({"selectedTrade": "hvac", "setupCompleted": False})
    with ConfigurationStore(backend) as store:
        with pytest.raises(StagedTradeMismatch) as exc:
            store.commit(expected=TradeId.PLUMBING)
        assert exc.value.staged == "hvac"
        assert backend.record == {"selectedTrade": "hvac", "setupCompleted": False}
        assert store.commit(expected="hvac").setup_completed


def test_commit_sees_a_stage_written_by_an_earlier_session():
    backend = MemoryBackend()
    with ConfigurationStore(backend) as first:
        first.stage(TradeId.LANDSCAPING)
    with ConfigurationStore(backend) as second:
        assert second.read().selected_trade is TradeId.LANDSCAPING
        assert second.commit().selected_trade is TradeId.LANDSCAPING


def test_failed_commit_leaves_state_unchanged(store, backend):
    store.stage(TradeId.PLUMBING)
    before = store.read()
    backend.fail_next("save")
    with pytest.raises(StorageUnavailable):
        store.commit()
    assert store.read() == before
    assert backend.record == before.to_dict()
    # retry succeeds
    assert store.commit().setup_completed


def test_failed_reload_during_commit_writes_nothing(store, backend):
    store.stage(TradeId.PLUMBING)
    backend.fail_next("load")
    with pytest.raises(StorageUnavailable):
        store.commit()
    assert backend.record == {"selectedTrade": "plumbing", "setupCompleted": False}
    assert store.read() == ConfigurationState(TradeId.PLUMBING, False)


def test_failed_stage_and_reset_leave_state_unchanged(store, backend):
    store.stage(TradeId.HVAC)
    backend.fail_next("save")
    with pytest.raises(StorageUnavailable):
        store.stage(TradeId.GENERAL)
    assert store.read().selected_trade is TradeId.HVAC

    store.commit()
    backend.fail_next("clear")
    with pytest.raises(StorageUnavailable):
        store.reset()
    assert store.read() == ConfigurationState(TradeId.HVAC, True)


def test_timed_out_commit_that_lands_late_is_reported(blocking_backend, journal):
    store = ConfigurationStore(blocking_backend, timeout_s=0.05, journal=journal)
    events = []
    store.add_listener(events.append)
    try:
        blocking_backend.inner.save({"selectedTrade": "hvac", "setupCompleted": False})
        with pytest.raises(StorageUnavailable, match="timed out"):
            store.commit()
        assert blocking_backend.entered.wait(2.0)
        # still running: undecided, reads refuse rather than guess
        with pytest.raises(StorageUnavailable, match="still running"):
            store.read()
        assert events == []

        blocking_backend.release()
        store._timeout_s = 2.0
        assert store.read() == ConfigurationState(TradeId.HVAC, True)
        assert events == [ConfigurationState(TradeId.HVAC, True)]
        assert journal.entries() == ["setup error", "setup completed"]

        # a retry sees the landed commit and reports nothing twice
        assert store.commit() == ConfigurationState(TradeId.HVAC, True)
        assert len(events) == 1
    finally:
        store.close()


def test_timed_out_commit_that_fails_late_changes_nothing(blocking_backend):
    store = ConfigurationStore(blocking_backend, timeout_s=0.05)
    events = []
    store.add_listener(events.append)
    try:
        blocking_backend.inner.save({"selectedTrade": "hvac", "setupCompleted": False})
        blocking_backend.fail_on_release = True
        with pytest.raises(StorageUnavailable, match="timed out"):
            store.commit()
        assert blocking_backend.entered.wait(2.0)
        blocking_backend.release()
        store._timeout_s = 2.0
        assert store.read() == ConfigurationState(TradeId.HVAC, False)
        assert blocking_backend.inner.record == {"selectedTrade": "hvac", "setupCompleted": False}
        assert events == []
    finally:
        store.close()


def test_reads_during_concurrent_writes_are_self_consistent(store):
    seen = []
    mixed = []
    stop = threading.Event()

    def reader():
        while not stop.is_set():
            s = store.read()
            seen.append(s)
            if s.setup_completed and s.selected_trade is None:
                mixed.append(s)

    t = threading.Thread(target=reader)
    t.start()
    try:
        for _ in range(20):
            store.stage(TradeId.HVAC)
            store.stage(TradeId.PLUMBING)
            store.commit()
            store.reset()
    finally:
        stop.set()
        t.join()
    assert seen
    assert mixed == []
    assert all(isinstance(s, ConfigurationState) for s in seen)


def test_reset_returns_to_initial(store, backend):
    store.stage(TradeId.PLUMBING)
    store.commit()
    assert store.reset() == INITIAL_STATE
    assert store.read() == INITIAL_STATE
    assert backend.record is None


def test_listeners_see_commit_and_reset(store):
    events = []
    remove = store.add_listener(events.append)
    store.add_listener(lambda _s: 1 / 0)  # a failing listener does not undo the commit
    store.stage(TradeId.HVAC)
    store.commit()
    store.reset()
    remove()
    store.stage(TradeId.HVAC)
    store.commit()
    assert events == [ConfigurationState(TradeId.HVAC, True), INITIAL_STATE]
    assert store.read().setup_completed


def test_store_writes_to_the_journal(backend, journal):
    with ConfigurationStore(backend, journal=journal) as store:
        store.stage(TradeId.HVAC)
        store.commit()
        store.reset()
    assert journal.entries() == ["trade staged", "setup completed", "setup reset"]


def test_retry_recovers_from_transient_storage_errors(store, backend):
    store.stage(TradeId.HVAC)
    backend.fail_next("save", times=2)
    delays = []
    state = with_storage_retry(store.commit, max_attempts=3, sleep=delays.append)
    assert state.setup_completed
    assert len(delays) == 2
    assert all(0.0 <= d <= 2.0 for d in delays)


def test_retry_gives_up_after_max_attempts(store, backend):
    store.stage(TradeId.HVAC)
    backend.fail_next("save", times=5)
    with pytest.raises(StorageUnavailable):
        with_storage_retry(store.commit, max_attempts=3, sleep=lambda _d: None)
    assert store.read().setup_completed is False


def test_retry_does_not_mask_contract_violations(store):
    calls = []

    def confirm():
        calls.append(1)
        return store.commit()

    with pytest.raises(NoTradeStaged):
        with_storage_retry(confirm, sleep=lambda _d: None)
    assert len(calls) == 1


def test_refresh_picks_up_an_external_write(store, backend):
    store.stage(TradeId.HVAC)
    backend.save({"selectedTrade": "electrical", "setupCompleted": True})
    assert store.read() == ConfigurationState(TradeId.HVAC, False)
    assert store.refresh() == ConfigurationState(TradeId.ELECTRICAL, True)


def test_reset_clears_an_unreadable_record():
    backend = MemoryBackend({"selectedTrade": "roofing", "setupCompleted": True})
    with ConfigurationStore(backend) as store:
        with pytest.raises(UnknownTrade):
            store.read()
        assert store.reset() == INITIAL_STATE
        assert backend.record is None
        assert store.read() == INITIAL_STATE
