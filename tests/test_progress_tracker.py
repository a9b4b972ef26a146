from indextts_installer.services.installation import ProgressTracker


def test_initial_record_is_idle() -> None:
    tracker = ProgressTracker(ready_message="Ready to install")
    record = tracker.snapshot()

    assert record.step == "idle"
    assert record.progress == 0
    assert record.message == "Ready to install"
    assert not record.is_complete
    assert not record.has_error
    assert record.run_id is None
    assert record.error_kind is None


def test_update_replaces_all_fields() -> None:
    tracker = ProgressTracker()
    tracker.update("error", 0, "boom", has_error=True, error_kind="command_failed", run_id="r1")
    tracker.update("cloning", 20, "Cloning...", run_id="r2")

    record = tracker.snapshot()
    assert record.step == "cloning"
    assert record.progress == 20
    assert record.message == "Cloning..."
    # Flags from the previous update do not leak into the new one
    assert not record.has_error
    assert record.error_kind is None
    assert record.run_id == "r2"


def test_snapshot_is_a_copy() -> None:
    tracker = ProgressTracker()
    first = tracker.snapshot()
    tracker.update("completed", 100, "done", is_complete=True)

    assert first.step == "idle"
    assert tracker.snapshot().is_complete
    assert tracker.snapshot().is_terminal


def test_reset_and_run_ids() -> None:
    tracker = ProgressTracker(ready_message="ready")
    tracker.update("models", 90, "models")
    tracker.reset()
    assert tracker.snapshot().step == "idle"
    assert tracker.snapshot().message == "ready"

    assert tracker.begin_run() != tracker.begin_run()


def test_separate_trackers_do_not_share_state() -> None:
    a = ProgressTracker()
    b = ProgressTracker()
    a.update("preparing", 5, "prep")
    assert b.snapshot().step == "idle"


def test_begin_run_stamps_fresh_idle_record() -> None:
    tracker = ProgressTracker(ready_message="ready")
    tracker.update("completed", 100, "done", is_complete=True, run_id="old")

    run_id = tracker.begin_run()
    record = tracker.snapshot()

    assert record.run_id == run_id != "old"
    assert record.step == "idle"
    assert record.message == "ready"
    assert not record.is_complete
