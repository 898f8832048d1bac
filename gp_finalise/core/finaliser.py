"""High-level pipeline: probe, verify, select CA location, patch, restart, report."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .. import __version__
from ..utils.console import Reporter
from ..utils.logging import get_logger
from ..utils.platform import detect_platform
from ..utils.processes import CommandRunner
from .errors import NotRootError
from .patcher import ConfigurationPatcher, PatchResult
from .probe import (
    CaLocation,
    InitSystem,
    PackageManager,
    check_profile_script,
    detect_ca_location,
    detect_init_system,
    detect_package_managers,
    locate_init_script,
    locate_unit_file,
    resolve_package_manager,
    verify_installation,
)
from .restart import RestartReport, restart_client
from .settings import Settings

logger = get_logger("finaliser")


@dataclass
class RunReport:
    package_manager: PackageManager
    package_registered: bool
    init_system: InitSystem
    service_file: Path
    ca_location: CaLocation
    patches: List[PatchResult] = field(default_factory=list)
    restart: RestartReport | None = None

    def changed_files(self) -> List[Path]:
        return [result.path for result in self.patches if result.changed]


def ensure_root(geteuid=os.geteuid) -> None:
    if geteuid() != 0:
        raise NotRootError("This tool must be run as root. Try: sudo gp-finalise")


class Finaliser:
    """Runs one finalisation pass over the local GlobalProtect installation."""

    def __init__(
        self,
        settings: Settings,
        reporter: Reporter,
        runner: CommandRunner | None = None,
        prefer: Optional[PackageManager] = None,
    ) -> None:
        self.settings = settings
        self.reporter = reporter
        self.runner = runner or CommandRunner()
        self.prefer = prefer

    def run(self) -> RunReport:
        logger.info("gp-finalise %s starting on %s", __version__, detect_platform().describe())

        found = detect_package_managers(self.runner, self.reporter)
        manager = resolve_package_manager(found, self.prefer, self.reporter)
        registered = verify_installation(manager, self.settings, self.runner, self.reporter)

        init_system = detect_init_system(self.runner, self.reporter)
        if init_system is InitSystem.SYSTEMD:
            service_file = locate_unit_file(self.settings, self.runner, self.reporter)
        else:
            service_file = locate_init_script(self.settings, self.reporter)
        check_profile_script(self.settings)

        location = detect_ca_location(self.settings, self.reporter)

        report = RunReport(
            package_manager=manager,
            package_registered=registered,
            init_system=init_system,
            service_file=service_file,
            ca_location=location,
        )
        patcher = ConfigurationPatcher(self.settings, location, self.runner, self.reporter)
        report.patches.append(patcher.ensure_csh_profile())
        report.patches.append(patcher.patch_profile_script())
        if init_system is InitSystem.SYSTEMD:
            report.patches.append(patcher.patch_unit_file(service_file))
            self.reporter.info("Skipping SysV Initscript update")
        else:
            self.reporter.info("Skipping systemd unit file update")
            report.patches.append(patcher.patch_init_script(service_file))

        report.restart = restart_client(init_system, self.settings, self.runner, self.reporter)
        self.print_summary()
        return report

    def print_summary(self) -> None:
        out = self.reporter
        out.line()
        out.line("----------")
        out.line()
        out.line("GlobalProtect configuration update completed!")
        out.line("You will need to restart your computer to complete installation. Then use:")
        out.line()
        out.line(f"  globalprotect connect -p {self.settings.portal} -u <your-username>")
        out.line()
        out.line("to connect to the VPN.")
        out.line()
