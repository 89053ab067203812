"""Log source adapters: container log streams and plain files."""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections import deque
from pathlib import Path
from typing import Optional

from conduit_monitor.source.errors import (
    LogFetchError,
    LogSourceError,
    TargetUnreachableError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0


class LogSource:
    """Read-only access to the most recent output of a monitored process.

    The engine depends on exactly two operations: ``is_reachable`` and
    ``fetch``. ``started_at`` is optional header decoration.
    """

    name: str = ""

    def is_reachable(self) -> bool:
        raise NotImplementedError

    def fetch(self, line_count: int) -> list[str]:
        """Return the last ``line_count`` lines, oldest first."""
        raise NotImplementedError

    def started_at(self) -> Optional[str]:
        return None

    def describe(self) -> str:
        return self.name


class DockerLogSource(LogSource):
    """Tails a running container via the docker CLI."""

    def __init__(
        self,
        container: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        docker_bin: str = "docker",
    ) -> None:
        resolved = shutil.which(docker_bin)
        if resolved is None:
            raise LogSourceError(f"docker executable not found: {docker_bin}")
        self.name = container
        self._docker = resolved
        self._timeout = timeout

    def _run(self, args: list[str], merge_stderr: bool = False) -> str:
        cmd = [self._docker, *args]
        try:
            result = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
                text=True,
                errors="replace",
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise LogFetchError(
                f"docker {args[0]} timed out after {self._timeout:g}s"
            ) from e
        except OSError as e:
            raise LogFetchError(f"docker {args[0]} failed: {e}") from e

        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            if "No such container" in detail:
                raise TargetUnreachableError(self.name, detail)
            raise LogFetchError(f"docker {args[0]} exited {result.returncode}: {detail}")
        return result.stdout

    def is_reachable(self) -> bool:
        try:
            out = self._run([
                "ps", "--filter", f"name=^{self.name}$", "--format", "{{.Names}}",
            ])
        except LogSourceError as e:
            logger.warning("Reachability check failed for %s: %s", self.name, e)
            return False
        return self.name in out.splitlines()

    def fetch(self, line_count: int) -> list[str]:
        # The relay writes its status lines to stderr
        out = self._run(
            ["logs", "--tail", str(line_count), self.name], merge_stderr=True
        )
        return out.splitlines()

    def started_at(self) -> Optional[str]:
        try:
            out = self._run(["inspect", "-f", "{{.State.StartedAt}}", self.name])
        except LogSourceError:
            return None
        # 2025-01-12T08:30:01.123456789Z -> 2025-01-12T08:30:01
        return out.strip().split(".")[0] or None

    def describe(self) -> str:
        return f"container {self.name}"


class FileLogSource(LogSource):
    """Tails a log file on disk."""

    def __init__(self, path: str) -> None:
        self._path = Path(path)
        self.name = str(self._path)

    def is_reachable(self) -> bool:
        return self._path.is_file()

    def fetch(self, line_count: int) -> list[str]:
        if not self._path.is_file():
            raise TargetUnreachableError(self.name, "file not found")
        try:
            with open(self._path, "r", encoding="utf-8", errors="replace") as f:
                tail = deque(f, maxlen=line_count)
        except OSError as e:
            raise LogFetchError(f"Could not read {self._path}: {e}") from e
        return [line.rstrip("\n\r") for line in tail]

    def describe(self) -> str:
        return f"file {self.name}"
