"""Process management helpers."""

from __future__ import annotations

import shutil
import signal
import subprocess
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import psutil

from .logging import get_logger

logger = get_logger("processes")

Which = Callable[[str], Optional[str]]


@dataclass
class CommandResult:
    argv: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return self.stdout + self.stderr


class CommandRunner:
    """Runs external commands to completion and captures their output."""

    def __init__(self, which: Which = shutil.which) -> None:
        self.which = which

    def run(self, command: Sequence[str]) -> CommandResult:
        argv = [str(part) for part in command]
        logger.debug("Running: %s", " ".join(argv))
        completed = subprocess.run(argv, capture_output=True, text=True, check=False)
        if completed.returncode != 0:
            logger.debug("%s exited %s: %s", argv[0], completed.returncode, completed.stderr.strip())
        return CommandResult(argv, completed.returncode, completed.stdout, completed.stderr)


def kill_processes(name: str, sig: signal.Signals = signal.SIGKILL) -> List[int]:
    """Signal every process called ``name`` and return the affected pids."""

    killed: List[int] = []
    for proc in psutil.process_iter(["name"]):
        try:
            if proc.info.get("name") != name:
                continue
            proc.send_signal(sig)
            killed.append(proc.pid)
            logger.info("Sent %s to %s (pid %s)", sig.name, name, proc.pid)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    return killed
