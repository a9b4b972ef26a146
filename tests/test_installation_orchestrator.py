import asyncio
import subprocess
from pathlib import Path
from typing import Any

import pytest

from indextts_installer.exceptions import ResourceConflictError, ValidationError
from indextts_installer.models.config import InstallerConfig
from indextts_installer.models.installation import InstallConfig, InstallProgress
from indextts_installer.services.installation import InstallationOrchestrator, ProgressTracker, is_transient_error
from indextts_installer.utils.subprocess_executor import SubprocessExecutor


class RecordingTracker(ProgressTracker):
    """Tracker that remembers every published record."""

    def __init__(self) -> None:
        super().__init__(ready_message="Ready to install")
        self.history: list[InstallProgress] = []

    def update(self, *args: Any, **kwargs: Any) -> None:
        super().update(*args, **kwargs)
        self.history.append(self.snapshot())


class FakeRun:
    """Stands in for SubprocessExecutor.run, replaying scripted outcomes in order.

    Each outcome is (returncode, stderr), an exception instance, or an asyncio.Event
    to block on until set.
    """

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[tuple[tuple[str, ...], Any]] = []

    async def __call__(self, *args: str, cwd: Any = None, env: Any = None, check: bool = False, timeout: Any = None):
        self.calls.append((args, cwd))
        outcome = self.outcomes.pop(0) if self.outcomes else (0, "")
        if isinstance(outcome, asyncio.Event):
            await outcome.wait()
            outcome = (0, "")
        if isinstance(outcome, BaseException):
            raise outcome
        returncode, stderr = outcome
        return subprocess.CompletedProcess(args, returncode, b"", stderr.encode())


def make_orchestrator(**settings: Any) -> tuple[InstallationOrchestrator, RecordingTracker]:
    tracker = RecordingTracker()
    config = InstallerConfig(step_delay=0, retry_delay=0, **settings)
    return InstallationOrchestrator(tracker, config, lang="en"), tracker


def use_fake_run(monkeypatch: pytest.MonkeyPatch, *outcomes: Any) -> FakeRun:
    fake = FakeRun(*outcomes)
    monkeypatch.setattr(SubprocessExecutor, "run", staticmethod(fake))
    return fake


@pytest.mark.asyncio
async def test_successful_run_publishes_every_step_in_order(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    fake = use_fake_run(monkeypatch, (0, ""), (0, ""))
    orchestrator, tracker = make_orchestrator()
    install_path = tmp_path / "app"

    ack = await orchestrator.start_installation(InstallConfig(install_path=str(install_path)))
    assert ack == "Installation started"
    assert await orchestrator.wait() is True

    assert [r.step for r in tracker.history] == [
        "preparing",
        "cloning",
        "cloned",
        "dependencies",
        "deps_installed",
        "models",
        "completed",
    ]
    assert [r.progress for r in tracker.history] == [5, 20, 40, 60, 80, 90, 100]

    final = orchestrator.get_installation_progress()
    assert final.is_complete
    assert not final.has_error
    assert final.message == "IndexTTS installation complete!"
    assert len({r.run_id for r in tracker.history}) == 1
    assert (install_path / "checkpoints").is_dir()

    clone_args, _ = fake.calls[0]
    assert clone_args == ("git", "clone", "https://github.com/X-T-E-R/IndexTTS.git", str(install_path))
    pip_args, pip_cwd = fake.calls[1]
    assert pip_args == ("pip", "install", "-r", "requirements.txt")
    assert Path(pip_cwd) == install_path


@pytest.mark.asyncio
async def test_start_creates_missing_directory_before_returning(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    gate = asyncio.Event()
    use_fake_run(monkeypatch, gate)
    orchestrator, _ = make_orchestrator()
    install_path = tmp_path / "deep" / "nested" / "app"

    await orchestrator.start_installation(InstallConfig(install_path=str(install_path)))

    assert install_path.is_dir()
    assert orchestrator.is_running
    gate.set()
    await orchestrator.wait()


@pytest.mark.asyncio
async def test_clone_failure_aborts_pipeline(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    fake = use_fake_run(monkeypatch, (128, "fatal: repository not found"))
    orchestrator, tracker = make_orchestrator()
    install_path = tmp_path / "app"

    await orchestrator.start_installation(InstallConfig(install_path=str(install_path)))
    assert await orchestrator.wait() is False

    final = orchestrator.get_installation_progress()
    assert final.step == "error"
    assert final.progress == 0
    assert final.has_error
    assert not final.is_complete
    assert final.error_kind == "command_failed"
    assert final.message == "Git clone failed: fatal: repository not found"
    assert len(fake.calls) == 1
    assert "dependencies" not in [r.step for r in tracker.history]
    assert not (install_path / "checkpoints").exists()


@pytest.mark.asyncio
async def test_dependency_failure_scenario(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    use_fake_run(monkeypatch, (0, ""), (1, "package X not found"))
    orchestrator, tracker = make_orchestrator()
    install_path = tmp_path / "app1"

    await orchestrator.start_installation(InstallConfig(install_path=str(install_path)))
    await orchestrator.wait()

    final = orchestrator.get_installation_progress()
    assert final.step == "error"
    assert final.progress == 0
    assert "package X not found" in final.message
    assert not final.is_complete
    assert final.has_error
    assert install_path.is_dir()
    assert not (install_path / "checkpoints").exists()
    assert [r.progress for r in tracker.history] == [5, 20, 40, 60, 0]


@pytest.mark.asyncio
async def test_missing_git_is_reported_as_tool_not_found(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    use_fake_run(monkeypatch, FileNotFoundError(2, "No such file or directory", "git"))
    orchestrator, _ = make_orchestrator()

    await orchestrator.start_installation(InstallConfig(install_path=str(tmp_path / "app")))
    await orchestrator.wait()

    final = orchestrator.get_installation_progress()
    assert final.error_kind == "tool_not_found"
    assert final.message.startswith("Failed to run git clone:")


@pytest.mark.asyncio
async def test_dependency_timeout(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    use_fake_run(monkeypatch, (0, ""), asyncio.TimeoutError())
    orchestrator, _ = make_orchestrator(dependencies_timeout=5)

    await orchestrator.start_installation(InstallConfig(install_path=str(tmp_path / "app")))
    await orchestrator.wait()

    final = orchestrator.get_installation_progress()
    assert final.error_kind == "timeout"
    assert final.message == "Pip install timed out after 5.0s"


@pytest.mark.asyncio
async def test_transient_clone_error_is_retried(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    fake = use_fake_run(
        monkeypatch,
        (128, "fatal: unable to access: Could not resolve host: github.com"),
        (0, ""),
        (0, ""),
    )
    orchestrator, _ = make_orchestrator(max_retries=2)

    await orchestrator.start_installation(InstallConfig(install_path=str(tmp_path / "app")))
    assert await orchestrator.wait() is True
    assert [args[1] for args, _ in fake.calls] == ["clone", "clone", "install"]


@pytest.mark.asyncio
async def test_transient_retries_are_bounded(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    transient = (128, "fatal: Could not resolve host: github.com")
    fake = use_fake_run(monkeypatch, transient, transient, transient)
    orchestrator, _ = make_orchestrator(max_retries=1)

    await orchestrator.start_installation(InstallConfig(install_path=str(tmp_path / "app")))
    assert await orchestrator.wait() is False
    assert len(fake.calls) == 2
    assert orchestrator.get_installation_progress().error_kind == "command_failed"


@pytest.mark.asyncio
async def test_concurrent_start_is_rejected(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    gate = asyncio.Event()
    use_fake_run(monkeypatch, gate)
    orchestrator, _ = make_orchestrator()

    await orchestrator.start_installation(InstallConfig(install_path=str(tmp_path / "a")))
    with pytest.raises(ResourceConflictError) as exc_info:
        await orchestrator.start_installation(InstallConfig(install_path=str(tmp_path / "b")))
    assert exc_info.value.status_code == 409
    assert not (tmp_path / "b").exists()

    gate.set()
    await orchestrator.wait()


@pytest.mark.asyncio
async def test_non_empty_directory_is_refused(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    fake = use_fake_run(monkeypatch)
    orchestrator, tracker = make_orchestrator()
    install_path = tmp_path / "app"
    install_path.mkdir()
    (install_path / "README.md").write_text("partial clone", encoding="utf-8")

    with pytest.raises(ResourceConflictError) as exc_info:
        await orchestrator.start_installation(InstallConfig(install_path=str(install_path)))

    assert exc_info.value.i18n_key == "installation.directory_not_empty"
    assert fake.calls == []
    assert tracker.history == []


@pytest.mark.asyncio
async def test_existing_empty_directory_is_accepted(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    use_fake_run(monkeypatch)
    orchestrator, _ = make_orchestrator()

    await orchestrator.start_installation(InstallConfig(install_path=str(tmp_path)))
    assert await orchestrator.wait() is True


@pytest.mark.asyncio
async def test_file_as_install_path_is_rejected(tmp_path: Path) -> None:
    orchestrator, _ = make_orchestrator()
    target = tmp_path / "file.txt"
    target.write_text("x", encoding="utf-8")

    with pytest.raises(ValidationError):
        await orchestrator.start_installation(InstallConfig(install_path=str(target)))


@pytest.mark.asyncio
async def test_cancel_marks_record_cancelled(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    gate = asyncio.Event()
    use_fake_run(monkeypatch, gate)
    orchestrator, _ = make_orchestrator()

    assert await orchestrator.cancel_installation() is False

    await orchestrator.start_installation(InstallConfig(install_path=str(tmp_path / "app")))
    # Let the task reach the clone step
    while orchestrator.get_installation_progress().step != "cloning":
        await asyncio.sleep(0)

    assert await orchestrator.cancel_installation() is True
    final = orchestrator.get_installation_progress()
    assert final.step == "error"
    assert final.error_kind == "cancelled"
    assert final.message == "Installation cancelled"
    assert not orchestrator.is_running


@pytest.mark.asyncio
async def test_chinese_progress_messages(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    use_fake_run(monkeypatch)
    tracker = RecordingTracker()
    orchestrator = InstallationOrchestrator(tracker, InstallerConfig(step_delay=0), lang="zh")

    await orchestrator.start_installation(InstallConfig(install_path=str(tmp_path / "app")))
    await orchestrator.wait()

    assert tracker.history[1].message == "正在克隆 IndexTTS 源代码..."
    assert tracker.history[-1].message == "IndexTTS 安装完成！"


@pytest.mark.asyncio
async def test_wait_without_run_returns_none() -> None:
    orchestrator, _ = make_orchestrator()
    assert await orchestrator.wait() is None


def test_is_transient_error() -> None:
    assert is_transient_error("fatal: unable to access 'https://github.com/': Could not resolve host: github.com")
    assert is_transient_error("ReadTimeoutError: HTTPSConnectionPool(host='pypi.org')")
    assert not is_transient_error("ERROR: No matching distribution found for package-x")


@pytest.mark.asyncio
async def test_new_run_never_shows_previous_run_record(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    gate = asyncio.Event()
    use_fake_run(monkeypatch, (0, ""), (0, ""), gate)
    orchestrator, _ = make_orchestrator()

    await orchestrator.start_installation(InstallConfig(install_path=str(tmp_path / "first")))
    assert await orchestrator.wait() is True
    first = orchestrator.get_installation_progress()
    assert first.is_complete

    await orchestrator.start_installation(InstallConfig(install_path=str(tmp_path / "second")))
    record = orchestrator.get_installation_progress()

    assert record.run_id == orchestrator.current_run_id
    assert record.run_id != first.run_id
    assert record.step == "idle"
    assert not record.is_complete
    assert not record.has_error

    gate.set()
    await orchestrator.wait()
    assert orchestrator.get_installation_progress().run_id == record.run_id


@pytest.mark.asyncio
async def test_cancel_before_first_step_still_records_cancellation(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    fake = use_fake_run(monkeypatch)
    orchestrator, _ = make_orchestrator()

    await orchestrator.start_installation(InstallConfig(install_path=str(tmp_path / "app")))
    assert await orchestrator.cancel_installation() is True

    final = orchestrator.get_installation_progress()
    assert final.step == "error"
    assert final.progress == 0
    assert final.has_error
    assert final.error_kind == "cancelled"
    assert final.run_id == orchestrator.current_run_id
    assert fake.calls == []
    assert not orchestrator.is_running


@pytest.mark.asyncio
async def test_checkpoints_dir_failure_is_a_filesystem_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    async def clone_leaving_file(
        *args: str, cwd: Any = None, env: Any = None, check: bool = False, timeout: Any = None
    ) -> subprocess.CompletedProcess[bytes]:
        if args[:2] == ("git", "clone"):
            # A file where the checkpoints directory should go
            (Path(args[3]) / "checkpoints").write_text("not a directory", encoding="utf-8")
        return subprocess.CompletedProcess(args, 0, b"", b"")

    monkeypatch.setattr(SubprocessExecutor, "run", staticmethod(clone_leaving_file))
    orchestrator, tracker = make_orchestrator()

    await orchestrator.start_installation(InstallConfig(install_path=str(tmp_path / "app")))
    assert await orchestrator.wait() is False

    final = orchestrator.get_installation_progress()
    assert final.step == "error"
    assert final.progress == 0
    assert final.has_error
    assert not final.is_complete
    assert final.error_kind == "filesystem"
    assert [r.progress for r in tracker.history] == [5, 20, 40, 60, 80, 90, 0]
    assert "completed" not in [r.step for r in tracker.history]
