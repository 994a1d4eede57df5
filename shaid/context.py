"""Local system probing used to describe the user's environment to the model.

Everything here is best-effort: a probe that fails degrades to ``"unknown"``
rather than aborting the run.  Only an unreadable working directory is fatal.
"""

from __future__ import annotations

import logging
import os
import platform
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

_UNKNOWN = "unknown"
_PROBE_TIMEOUT = 5.0


class ContextError(Exception):
    """Raised when the system context cannot be gathered at all."""


@dataclass
class SystemContext:
    """Snapshot of the machine the generated command will run on."""
    os_type: str          # "linux" | "macos" | "windows" | ...
    os_release: str       # e.g. "Ubuntu 22.04.4 LTS" or "14.5"
    platform: str         # "unix" | "windows"
    arch: str             # e.g. "x86_64"
    shell: str
    current_dir: str
    home_dir: str
    cpu_model: str
    cpu_cores: int
    total_memory_mb: int
    free_memory_mb: int
    directory_listing: str

    @classmethod
    def gather(cls) -> SystemContext:
        """Probe the local machine.

        Raises:
            ContextError: If the current working directory cannot be read.
        """
        try:
            current_dir = os.getcwd()
        except OSError as exc:
            raise ContextError(f"Failed to get current directory: {exc}") from exc

        total_mb, free_mb = _memory_mb()
        try:
            listing = _directory_listing()
        except (OSError, subprocess.SubprocessError) as exc:
            listing = f"Unable to get directory listing: {exc}"

        return cls(
            os_type=_os_type(),
            os_release=_os_release(),
            platform="windows" if os.name == "nt" else "unix",
            arch=platform.machine() or _UNKNOWN,
            shell=os.environ.get("SHELL", _UNKNOWN),
            current_dir=current_dir,
            home_dir=str(Path.home()),
            cpu_model=_cpu_model(),
            cpu_cores=os.cpu_count() or 1,
            total_memory_mb=total_mb,
            free_memory_mb=free_mb,
            directory_listing=listing,
        )

    def build_environment_context(self) -> str:
        return (
            "\n"
            f"Operating System: {self.os_type} {self.os_release} ({self.platform} - {self.arch})\n"
            f"Shell: {self.shell}\n"
            f"Current Working Directory: {self.current_dir}\n"
            f"Home Directory: {self.home_dir}\n"
            f"CPU Info: {self.cpu_model} ({self.cpu_cores} cores)\n"
            f"Total Memory: {self.total_memory_mb} MB\n"
            f"Free Memory: {self.free_memory_mb} MB\n"
        )

    def build_full_context(self) -> str:
        """Environment summary followed by the working directory listing."""
        return (
            f"{self.build_environment_context()}\n"
            "Result of `ls -l` in working directory:\n"
            f"{self.directory_listing}"
        )


# ---------------------------------------------------------------------------
# Probes
# ---------------------------------------------------------------------------

def _run(args: list[str]) -> str | None:
    """Run a short probe command and return its stripped stdout, or None."""
    try:
        result = subprocess.run(
            args, capture_output=True, text=True, timeout=_PROBE_TIMEOUT, check=True,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("Probe %s failed: %s", args[0], exc)
        return None
    return result.stdout.strip() or None


def _os_type() -> str:
    if sys.platform == "darwin":
        return "macos"
    if sys.platform.startswith("win"):
        return "windows"
    return platform.system().lower() or _UNKNOWN


def _os_release() -> str:
    if sys.platform == "darwin":
        return _run(["sw_vers", "-productVersion"]) or _UNKNOWN
    if sys.platform.startswith("linux"):
        try:
            for line in Path("/etc/os-release").read_text(encoding="utf-8").splitlines():
                if line.startswith("PRETTY_NAME="):
                    return line.split("=", 1)[1].strip('"')
        except OSError as exc:
            logger.debug("Could not read /etc/os-release: %s", exc)
        return _run(["uname", "-r"]) or _UNKNOWN
    if sys.platform.startswith("win"):
        return _run(["cmd", "/C", "ver"]) or _UNKNOWN
    return platform.release() or _UNKNOWN


def _cpu_model() -> str:
    if sys.platform.startswith("linux"):
        try:
            with open("/proc/cpuinfo", encoding="utf-8") as handle:
                for line in handle:
                    if line.startswith("model name"):
                        return line.split(":", 1)[1].strip()
        except OSError as exc:
            logger.debug("Could not read /proc/cpuinfo: %s", exc)
    elif sys.platform == "darwin":
        model = _run(["sysctl", "-n", "machdep.cpu.brand_string"])
        if model:
            return model
    return platform.processor() or _UNKNOWN


def _memory_mb() -> tuple[int, int]:
    """Return (total, available) memory in MB; zeros when unknown."""
    if sys.platform.startswith("linux"):
        fields: dict[str, int] = {}
        try:
            with open("/proc/meminfo", encoding="utf-8") as handle:
                for line in handle:
                    key, _, rest = line.partition(":")
                    parts = rest.split()
                    if parts and parts[0].isdigit():
                        fields[key] = int(parts[0])  # kB
        except OSError:
            return 0, 0
        return fields.get("MemTotal", 0) // 1024, fields.get("MemAvailable", 0) // 1024

    try:
        page_size = os.sysconf("SC_PAGE_SIZE")
        total = os.sysconf("SC_PHYS_PAGES") * page_size
    except (AttributeError, OSError, ValueError):
        return 0, 0
    try:
        free = os.sysconf("SC_AVPHYS_PAGES") * page_size
    except (OSError, ValueError):
        free = 0
    return total // 1024 // 1024, free // 1024 // 1024


def _directory_listing() -> str:
    args = ["cmd", "/C", "dir"] if os.name == "nt" else ["ls"]
    result = subprocess.run(args, capture_output=True, text=True, timeout=_PROBE_TIMEOUT)
    if result.returncode != 0:
        raise OSError(f"Directory listing command failed with exit code: {result.returncode}")
    return result.stdout
