"""Per-platform process table enumerators."""

import logging
import sys
from abc import ABC, abstractmethod

import psutil

from proctrack.errors import (
    EnumerationError,
    PlatformError,
    ProcessNotFoundError,
    ProcessPermissionError,
)
from proctrack.models import Enumeration, ProcessRecord

logger = logging.getLogger(__name__)

UNKNOWN_OWNER = "unknown"


class ProcessSource(ABC):
    """Reads the OS process table and terminates processes."""

    @abstractmethod
    def enumerate(self, now: float) -> Enumeration:
        """
        Take one pass over the process table.

        Args:
            now: Timestamp to stamp every record with.

        Raises:
            EnumerationError: The process table or memory info is unreadable.
        """

    @abstractmethod
    def terminate(self, pid: int, force: bool = True) -> None:
        """
        Ask the OS to end a process.

        Args:
            pid: Process to terminate.
            force: Send a hard kill rather than a polite termination request.

        Raises:
            ProcessNotFoundError: The process does not exist.
            ProcessPermissionError: The caller may not signal the process.
            PlatformError: Any other OS failure.
        """


def _core_count() -> int:
    return psutil.cpu_count(logical=True) or 1


class PsutilProcessSource(ProcessSource):
    """
    Enumerator backed by psutil, used on Linux, macOS and other POSIX platforms.

    Fields the OS refuses to reveal to an unprivileged caller (typically
    other users' CPU times and memory on macOS) are reported as zero instead
    of dropping the process.
    """

    _ATTRS = ["pid", "name", "username", "memory_info", "cpu_times"]

    def _skip(self, pid: int) -> bool:
        return False

    def enumerate(self, now: float) -> Enumeration:
        try:
            total_memory = psutil.virtual_memory().total
        except (psutil.Error, OSError) as exc:
            raise EnumerationError(f"Cannot read physical memory size: {exc}") from exc

        records: list[ProcessRecord] = []
        try:
            # process_iter drops entries that exit mid-scan; denied fields become None
            for proc in psutil.process_iter(attrs=self._ATTRS, ad_value=None):
                info = proc.info
                pid = info.get("pid", proc.pid)
                if self._skip(pid):
                    continue

                mem_info = info.get("memory_info")
                cpu_times = info.get("cpu_times")
                records.append(
                    ProcessRecord(
                        pid=pid,
                        name=info.get("name") or "",
                        owner=info.get("username") or UNKNOWN_OWNER,
                        resident_memory=mem_info.rss if mem_info else 0,
                        cpu_time=cpu_times.user + cpu_times.system if cpu_times else 0.0,
                        sampled_at=now,
                    )
                )
        except (psutil.Error, OSError) as exc:
            raise EnumerationError(f"Cannot read process table: {exc}") from exc

        return Enumeration(records=records, total_memory=total_memory, core_count=_core_count())

    def terminate(self, pid: int, force: bool = True) -> None:
        try:
            proc = psutil.Process(pid)
            if force:
                proc.kill()
            else:
                proc.terminate()
        except psutil.NoSuchProcess as exc:
            raise ProcessNotFoundError(pid) from exc
        except psutil.AccessDenied as exc:
            raise ProcessPermissionError(pid) from exc
        except (psutil.Error, OSError) as exc:
            raise PlatformError(pid, f"Failed to terminate process {pid}: {exc}") from exc


class WindowsProcessSource(PsutilProcessSource):
    """psutil enumerator that hides the System Idle Process (pid 0)."""

    def _skip(self, pid: int) -> bool:
        # Its CPU time is the machine's idle time, not work done by a process
        return pid == 0


def default_source() -> ProcessSource:
    """Select the enumerator for the running platform."""
    if sys.platform == "win32":
        source: ProcessSource = WindowsProcessSource()
    else:
        source = PsutilProcessSource()
    logger.debug("Using %s on %s", type(source).__name__, sys.platform)
    return source
