"""Query the host for executables, files, and environment variables used by the probes."""

from __future__ import annotations

from dataclasses import dataclass
import glob
import os
import platform
import shutil
import subprocess
from typing import List, Optional, Sequence

import psutil


@dataclass
class CommandOutput:
    returncode: int
    stdout: str
    stderr: str

    @property
    def combined(self) -> str:
        return self.stdout + self.stderr


@dataclass
class HostInfo:
    hostname: str
    system: str
    release: str
    cpu_count: int
    memory_total: int


def gather_host_info() -> HostInfo:
    """Collect a short description of the machine being verified."""
    return HostInfo(
        hostname=platform.node(),
        system=platform.system(),
        release=platform.release(),
        cpu_count=psutil.cpu_count() or 0,
        memory_total=psutil.virtual_memory().total,
    )


def which(name: str) -> Optional[str]:
    return shutil.which(name)


def run_command(args: Sequence[str]) -> Optional[CommandOutput]:
    """Run a command and capture its text output, or return None if it cannot be started."""
    try:
        result = subprocess.run(list(args), capture_output=True, text=True, errors="replace", check=False)
    except OSError:
        return None
    return CommandOutput(returncode=result.returncode, stdout=result.stdout, stderr=result.stderr)


def env_value(name: str) -> str:
    return os.environ.get(name, "")


def file_size(path: str) -> Optional[int]:
    """Size of a regular file in bytes, or None if it does not exist."""
    try:
        if not os.path.isfile(path):
            return None
        return os.path.getsize(path)
    except OSError:
        return None


def is_dir(path: str) -> bool:
    return os.path.isdir(path)


def glob_files(pattern: str) -> List[str]:
    return sorted(glob.glob(pattern))


def find_file(root: str, filename: str) -> Optional[str]:
    """Search below ``root`` for ``filename``; unreadable directories are skipped."""
    for current, _dirs, files in os.walk(root):
        if filename in files:
            return os.path.join(current, filename)
    return None