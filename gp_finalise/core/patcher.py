"""Idempotent edits of the client's profile scripts and service definitions."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from string import Template
from typing import List

from ..utils.console import Reporter
from ..utils.logging import get_logger
from ..utils.processes import CommandRunner
from .probe import CaLocation
from .settings import Settings

logger = get_logger("patcher")

PROFILE_ANCHOR = re.compile(r"^PANGPA=")
UNIT_ANCHOR = re.compile(r"\[Service\]")
INIT_ANCHOR = re.compile(r"^DAEMON=")

# Lines end after each "\n" only, like sed; undecodable bytes round-trip unchanged.
LINE_SPLIT = re.compile(r"(?<=\n)")
FILE_ENCODING = "utf-8"
FILE_ERRORS = "surrogateescape"

CSH_MODE = 0o644
CSH_OWNER = (0, 0)

CSH_TEMPLATE = Template(
    """#!/bin/tcsh

set PANGPA=$agent_path
$setenv_line

(pgrep -u $$USER $agent_name > /dev/null) >& /dev/null

if ($$? != 0) then
\tif (-f $$PANGPA) then
\t\t$$PANGPA start &
\tendif
endif
"""
)


class PatchOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    NO_ANCHOR = "no-anchor"


@dataclass
class PatchResult:
    path: Path
    outcome: PatchOutcome

    @property
    def changed(self) -> bool:
        return self.outcome in (PatchOutcome.CREATED, PatchOutcome.UPDATED)


def ensure_line_after(path: Path, expected_prefix: str, line: str, anchor: re.Pattern) -> PatchOutcome:
    """Insert ``line`` after every ``anchor`` match unless it is already set.

    The file counts as patched when any of its lines starts with
    ``expected_prefix``; in that case it is not touched at all.
    """

    with open(path, "r", encoding=FILE_ENCODING, errors=FILE_ERRORS, newline="") as handle:
        lines = LINE_SPLIT.split(handle.read())
    if lines and not lines[-1]:
        lines.pop()
    if any(existing.startswith(expected_prefix) for existing in lines):
        return PatchOutcome.UNCHANGED

    patched: List[str] = []
    inserted = False
    for existing in lines:
        patched.append(existing)
        if anchor.search(existing.rstrip("\r\n")):
            ending = "\r\n" if existing.endswith("\r\n") else "\n"
            if not existing.endswith("\n"):
                patched[-1] = existing + ending
            patched.append(line + ending)
            inserted = True
    if not inserted:
        logger.warning("No line matching %s in %s", anchor.pattern, path)
        return PatchOutcome.NO_ANCHOR

    with open(path, "w", encoding=FILE_ENCODING, errors=FILE_ERRORS, newline="") as handle:
        handle.write("".join(patched))
    return PatchOutcome.UPDATED


def render_csh_profile(location: CaLocation, settings: Settings) -> str:
    return CSH_TEMPLATE.substitute(
        agent_path=settings.agent_path,
        agent_name=settings.agent_name,
        setenv_line=location.setenv_line(),
    )


class ConfigurationPatcher:
    """Applies the CA location to every file the client reads its environment from."""

    def __init__(self, settings: Settings, location: CaLocation, runner: CommandRunner, reporter: Reporter) -> None:
        self.settings = settings
        self.location = location
        self.runner = runner
        self.reporter = reporter

    def _report(self, path: Path, outcome: PatchOutcome) -> PatchResult:
        if outcome is PatchOutcome.UPDATED:
            self.reporter.info(f"Updated {path}")
        elif outcome is PatchOutcome.NO_ANCHOR:
            self.reporter.warn(f"Couldn't find where to add {self.location.variable} in {path}; left unchanged")
        else:
            self.reporter.info(f"No need to update {path}")
        return PatchResult(path, outcome)

    def ensure_csh_profile(self) -> PatchResult:
        path = Path(self.settings.csh_profile)
        if path.exists():
            self.reporter.info(f"{path} already exists. To overwrite, delete this file and re-run this tool")
            return PatchResult(path, PatchOutcome.UNCHANGED)
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(render_csh_profile(self.location, self.settings))
        os.chown(path, *CSH_OWNER)
        os.chmod(path, CSH_MODE)
        self.reporter.info(f"Created {path}")
        return PatchResult(path, PatchOutcome.CREATED)

    def patch_profile_script(self) -> PatchResult:
        path = Path(self.settings.sh_profile)
        outcome = ensure_line_after(path, f"export {self.location.variable}=", self.location.export_line(), PROFILE_ANCHOR)
        return self._report(path, outcome)

    def patch_unit_file(self, path: Path) -> PatchResult:
        outcome = ensure_line_after(
            path,
            f'Environment="{self.location.variable}=',
            self.location.environment_line(),
            UNIT_ANCHOR,
        )
        result = self._report(path, outcome)
        if result.changed:
            reload = self.runner.run(["systemctl", "daemon-reload"])
            if not reload.ok:
                self.reporter.warn(f"systemctl daemon-reload failed: {reload.stderr.strip()}")
        return result

    def patch_init_script(self, path: Path) -> PatchResult:
        outcome = ensure_line_after(path, f"export {self.location.variable}=", self.location.export_line(), INIT_ANCHOR)
        return self._report(path, outcome)
