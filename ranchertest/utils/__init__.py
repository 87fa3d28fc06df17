"""Utility functions and helpers for the ranchertest toolkit."""
import functools
import logging
import subprocess
import time
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Type

from ..config import Config

logger = logging.getLogger("ranchertest.utils")

REDACTED = "[REDACTED]"


def run_command(
    cmd: Sequence[str],
    *,
    check: bool = True,
    capture_output: bool = False,
    cwd: Optional[Path] = None,
    timeout: Optional[int] = None,
    redact: Iterable[str] = (),
) -> subprocess.CompletedProcess:
    """Run an external command.

    Args:
        cmd: Command and arguments
        check: Raise CalledProcessError on a non-zero exit code
        capture_output: Capture stdout/stderr as text
        cwd: Working directory
        timeout: Timeout in seconds (default: Config.COMMAND_TIMEOUT)
        redact: Secret values hidden from the logged command line

    Returns:
        The completed process

    Raises:
        subprocess.CalledProcessError: If the command fails and check is True
    """
    cmd = list(cmd)
    cmd_str = ' '.join(redact_args(cmd, redact))
    logger.debug(f"💻 Running: {cmd_str}")
    try:
        result = subprocess.run(
            cmd,
            check=check,
            text=True,
            cwd=cwd,
            timeout=timeout or Config.COMMAND_TIMEOUT,
            stdout=subprocess.PIPE if capture_output else None,
            stderr=subprocess.PIPE if capture_output else None,
        )
        if capture_output:
            logger.debug(f"🟢 Output:\n{result.stdout}")
        return result
    except subprocess.CalledProcessError as e:
        msg = f"❌ Command failed: {cmd_str} (exit code: {e.returncode})"
        if capture_output:
            msg += f"\nStdout:\n{e.stdout}\nStderr:\n{e.stderr}"
        logger.error(msg)
        raise


def redact_args(args: Sequence[str], secrets: Iterable[str] = ()) -> List[str]:
    """Hide secrets in a command line before it gets logged.

    Values of ``key=value`` arguments whose key looks sensitive are replaced,
    as is any occurrence of an explicitly given secret.
    """
    secrets = [s for s in secrets if s]
    redacted = []
    for arg in args:
        key, sep, _ = arg.partition("=")
        if sep and any(k in key.lower() for k in Config.REDACT_KEYS):
            arg = f"{key}={REDACTED}"
        for secret in secrets:
            arg = arg.replace(secret, REDACTED)
        redacted.append(arg)
    return redacted


class RetryError(Exception):
    """Raised when an operation still fails after all retry attempts."""
    pass


def retry(
    max_retries: int = None,
    delay: float = None,
    exceptions: Tuple[Type[Exception], ...] = (Exception,)
):
    """Decorator for retrying functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts
        delay: Initial delay between retries in seconds
        exceptions: Tuple of exceptions to catch and retry on

    Returns:
        Decorated function with retry logic
    """
    if max_retries is None:
        max_retries = Config.MAX_CONFLICT_RETRIES
    if delay is None:
        delay = Config.RETRY_DELAY

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            last_exception = None

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e
                    if attempt < max_retries:
                        wait_time = delay * (2 ** attempt)
                        logger.warning(
                            f"Attempt {attempt + 1} failed: {str(e)}. "
                            f"Retrying in {wait_time:.2f}s..."
                        )
                        time.sleep(wait_time)

            raise RetryError(
                f"Failed after {max_retries} retries. Last error: {str(last_exception)}"
            ) from last_exception
        return wrapper
    return decorator
