"""Restart of the client's user agent and system service after patching."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import psutil

from ..utils.console import Reporter
from ..utils.processes import CommandRunner, kill_processes
from .probe import InitSystem
from .settings import Settings


@dataclass
class RestartReport:
    killed_agents: List[int] = field(default_factory=list)
    service_restarted: bool = False


def kill_agent(settings: Settings, reporter: Reporter) -> List[int]:
    """SIGKILL every running user agent; they respawn from the profile scripts."""

    try:
        killed = kill_processes(settings.agent_name)
    except psutil.Error as exc:
        reporter.warn(f"Unable to stop {settings.agent_name}: {exc}")
        return []
    if killed:
        reporter.info(f"Stopped {len(killed)} {settings.agent_name} process(es)")
    else:
        reporter.info(f"No running {settings.agent_name} process found")
    return killed


def restart_service(init_system: InitSystem, settings: Settings, runner: CommandRunner, reporter: Reporter) -> bool:
    if init_system is InitSystem.SYSTEMD:
        command = ["systemctl", "restart", settings.service_name]
    else:
        command = ["service", settings.service_name, "restart"]
    try:
        result = runner.run(command)
    except OSError as exc:
        reporter.warn(f"Could not run {' '.join(command)}: {exc}")
        return False
    if not result.ok:
        detail = result.stderr.strip() or result.stdout.strip()
        reporter.warn(f"{' '.join(command)} exited {result.returncode}: {detail}")
        return False
    reporter.info(f"Restarted {settings.service_name} service")
    return True


def restart_client(init_system: InitSystem, settings: Settings, runner: CommandRunner, reporter: Reporter) -> RestartReport:
    """Failures are reported but never raised: the configuration is already on disk."""

    reporter.info("Attempting to restart GlobalProtect services...")
    report = RestartReport()
    report.killed_agents = kill_agent(settings, reporter)
    report.service_restarted = restart_service(init_system, settings, runner, reporter)
    return report
