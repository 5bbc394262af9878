"""Local system probe for collecting host information."""

from __future__ import annotations

import logging
import os
import platform
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import psutil

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiskUsage:
    """Usage of the volume holding the user's home directory."""

    path: str
    total_bytes: int
    free_bytes: int


@dataclass(frozen=True)
class LocalHostFacts:
    """Facts about the local host system."""

    hostname: str
    os_name: str  # Darwin on macOS
    os_release: str  # e.g. "macOS 14.5"
    architecture: str  # arm64 / x86_64
    python_version: str
    cpu_count: int
    memory_total_gb: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class LocalProbe:
    """Collects information about the local system."""

    def __init__(self, home_dir: Optional[str] = None) -> None:
        self.home_dir = home_dir or os.path.expanduser("~")

    def collect(self) -> LocalHostFacts:
        """Collect local host facts."""
        return LocalHostFacts(
            hostname=platform.node(),
            os_name=platform.system(),
            os_release=self._get_os_release(),
            architecture=platform.machine(),
            python_version=platform.python_version(),
            cpu_count=psutil.cpu_count(logical=True) or 1,
            memory_total_gb=round(psutil.virtual_memory().total / (1024**3), 2),
        )

    def disk_usage(self) -> Optional[DiskUsage]:
        """Sample free space on the home volume; None if it cannot be read."""
        try:
            usage = psutil.disk_usage(self.home_dir)
        except OSError as exc:
            logger.warning("Could not read disk usage for %s: %s", self.home_dir, exc)
            return None
        return DiskUsage(path=self.home_dir, total_bytes=usage.total, free_bytes=usage.free)

    @staticmethod
    def _get_os_release() -> str:
        mac_version = platform.mac_ver()[0]
        if mac_version:
            return f"macOS {mac_version}"
        return f"{platform.system()} {platform.release()}"
