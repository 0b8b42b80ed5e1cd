"""
Timed subprocess execution for the Go toolchain helpers.

Used to query ``go env`` and to run ``goimports``/``gofmt`` on written test
files. Commands run in their own session and are always reaped, even when
they time out.
"""

import contextlib
import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class SubprocessError(Exception):
    """Base exception for subprocess-related errors."""

    pass


class SubprocessTimeoutError(SubprocessError):
    """Raised when a subprocess operation times out."""

    pass


class SubprocessExecutionError(SubprocessError):
    """Raised when a subprocess returns a non-zero exit code."""

    def __init__(self, message: str, returncode: int = 1):
        super().__init__(message)
        self.returncode = returncode


@contextlib.contextmanager
def run_subprocess_safe(
    cmd: list[str],
    timeout: int = 30,
    cwd: str | Path | None = None,
    env: dict[str, str] | None = None,
):
    """
    Run a command and yield ``(stdout, stderr)``.

    Raises:
        SubprocessTimeoutError: If the command exceeds ``timeout`` seconds
        SubprocessExecutionError: If the command exits non-zero
        OSError: If the command cannot be started
    """
    proc = subprocess.Popen(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        cwd=cwd,
        env=env,
        start_new_session=True,
    )

    try:
        stdout, stderr = proc.communicate(timeout=timeout)
        if proc.returncode != 0:
            raise SubprocessExecutionError(
                f"Command {cmd} failed with exit code {proc.returncode}. "
                f"Stderr: {stderr.strip()}",
                returncode=proc.returncode,
            )
        yield stdout, stderr

    except subprocess.TimeoutExpired:
        logger.warning("Command %s timed out after %s seconds", cmd, timeout)
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        proc.communicate()
        raise SubprocessTimeoutError(
            f"Command {cmd} timed out after {timeout} seconds"
        ) from None

    finally:
        if proc.poll() is None:
            try:
                proc.terminate()
            except ProcessLookupError:
                pass
            try:
                proc.wait(timeout=5)
            except subprocess.TimeoutExpired:
                logger.warning("Force killing stubborn process: %s", cmd)
                try:
                    proc.kill()
                except ProcessLookupError:
                    pass
                proc.wait()


def run_subprocess_simple(
    cmd: list[str],
    timeout: int = 30,
    cwd: str | Path | None = None,
    raise_on_error: bool = True,
) -> tuple[str | None, str | None, int]:
    """
    Run a command and return ``(stdout, stderr, returncode)``.

    With ``raise_on_error`` unset, failures are reported through the return
    code (-1 for timeouts and missing executables) instead of raising.
    """
    try:
        with run_subprocess_safe(cmd, timeout, cwd) as (stdout, stderr):
            return stdout, stderr, 0

    except SubprocessExecutionError as e:
        if raise_on_error:
            raise
        return None, str(e), e.returncode

    except (SubprocessTimeoutError, OSError) as e:
        if raise_on_error:
            raise
        return None, str(e), -1
