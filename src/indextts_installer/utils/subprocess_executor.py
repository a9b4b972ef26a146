"""Thin wrappers around subprocess that log every command they run."""

import asyncio
import subprocess
import sys
from pathlib import Path
from typing import Any

from indextts_installer.logger import get_logger

logger = get_logger(__name__)


def decode_output(data: bytes | None) -> str:
    """Decode captured subprocess output, replacing undecodable bytes."""
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


def _log_start(kind: str, args: tuple[str, ...], cwd: Path | str | None) -> str:
    command = " ".join(args)
    logger.debug(f"Running {kind} command", command=command, cwd=str(cwd) if cwd else None)
    return command


def _log_output(stdout: bytes | None, stderr: bytes | None) -> None:
    if stdout:
        logger.debug("Command stdout", output=decode_output(stdout))
    if stderr:
        logger.debug("Command stderr", output=decode_output(stderr))


class SubprocessExecutor:
    """Runs external tools; output is captured as bytes and logged at debug level."""

    @staticmethod
    async def run(
        *args: str,
        cwd: Path | str | None = None,
        env: dict[str, str] | None = None,
        check: bool = False,
        timeout: float | None = None,
    ) -> subprocess.CompletedProcess[bytes]:
        """
        Run a command on the event loop and wait for it.

        The child is killed if ``timeout`` elapses or the awaiting task is
        cancelled.

        Raises:
            subprocess.CalledProcessError: check=True and a non-zero exit code
            asyncio.TimeoutError: The deadline passed
            FileNotFoundError: The executable does not exist
        """
        command = _log_start("async", args, cwd)
        process: asyncio.subprocess.Process | None = None

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                env=env,
            )
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout or None)
        except asyncio.TimeoutError:
            logger.error(f"Command timed out after {timeout}s", command=command)
            await SubprocessExecutor._terminate(process)
            raise
        except asyncio.CancelledError:
            logger.warning("Command cancelled", command=command)
            await SubprocessExecutor._terminate(process)
            raise
        except FileNotFoundError:
            logger.debug("Executable not found", executable=args[0])
            raise

        _log_output(stdout, stderr)
        returncode = process.returncode if process.returncode is not None else -1
        if check and returncode != 0:
            raise subprocess.CalledProcessError(returncode, args, stdout, stderr)
        return subprocess.CompletedProcess(args, returncode, stdout, stderr)

    @staticmethod
    def run_sync(
        *args: str,
        cwd: Path | str | None = None,
        env: dict[str, str] | None = None,
        check: bool = False,
        timeout: float | None = None,
    ) -> subprocess.CompletedProcess[bytes]:
        """
        Blocking variant of :meth:`run`, for worker threads.

        Raises:
            subprocess.CalledProcessError: check=True and a non-zero exit code
            subprocess.TimeoutExpired: The deadline passed
            FileNotFoundError: The executable does not exist
        """
        command = _log_start("sync", args, cwd)
        try:
            result = subprocess.run(
                args,
                capture_output=True,
                cwd=str(cwd) if cwd else None,
                env=env,
                timeout=timeout,
                check=check,
            )
        except subprocess.TimeoutExpired:
            logger.error(f"Command timed out after {timeout}s", command=command)
            raise
        except FileNotFoundError:
            logger.debug("Executable not found", executable=args[0])
            raise

        _log_output(result.stdout, result.stderr)
        return result

    @staticmethod
    def spawn_detached(*args: str, cwd: Path | str | None = None) -> subprocess.Popen[bytes]:
        """
        Start a process that outlives the request and is not tracked afterwards.

        Raises:
            OSError: The executable cannot be started
        """
        logger.info("Spawning detached process", command=" ".join(args), cwd=str(cwd) if cwd else None)

        options: dict[str, Any] = {
            "cwd": str(cwd) if cwd else None,
            "stdin": subprocess.DEVNULL,
            "stdout": subprocess.DEVNULL,
            "stderr": subprocess.DEVNULL,
        }
        if sys.platform == "win32":
            options["creationflags"] = subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
        else:
            options["start_new_session"] = True

        return subprocess.Popen(args, **options)

    @staticmethod
    async def _terminate(process: asyncio.subprocess.Process | None) -> None:
        """Kill the child and reap it so no zombie is left behind."""
        if process is None or process.returncode is not None:
            return
        try:
            process.kill()
        except ProcessLookupError:
            pass
        # The wait carries on even if this task is cancelled again
        await asyncio.shield(process.wait())
