"""Point-in-time detection of the host environment and the client installation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from ..utils.console import Reporter
from ..utils.logging import get_logger
from ..utils.processes import CommandRunner
from .errors import (
    AmbiguousPackageManager,
    MissingBinary,
    MissingInitScript,
    MissingInstallDir,
    MissingProfileScript,
    MissingUnit,
    NoCaLocation,
    NoPackageManager,
    UnresolvedUnit,
)
from .settings import CaCandidate, Settings

logger = get_logger("probe")

CERT_SUFFIXES = (".pem", ".crt")
RUNNING_STATES = ("SystemState=running", "SystemState=degraded")


class PackageManager(str, Enum):
    RPM = "rpm"
    DPKG = "dpkg"
    BOTH = "both"
    NONE = "none"


class InitSystem(str, Enum):
    SYSTEMD = "systemd"
    SYSV = "sysv"


@dataclass(frozen=True)
class CaLocation:
    variable: str
    path: str

    def export_line(self) -> str:
        return f"export {self.variable}={self.path}"

    def environment_line(self) -> str:
        return f'Environment="{self.variable}={self.path}"'

    def setenv_line(self) -> str:
        return f"setenv {self.variable} {self.path}"


def detect_package_managers(runner: CommandRunner, reporter: Reporter) -> PackageManager:
    """Look for rpm and dpkg independently of each other."""

    found = {}
    for tool in ("rpm", "dpkg"):
        path = runner.which(tool)
        found[tool] = path is not None
        if path:
            reporter.info(f"Discovered {tool} binary at {path}")
        else:
            reporter.info(f"Couldn't locate {tool} binary")
    if found["rpm"] and found["dpkg"]:
        return PackageManager.BOTH
    if found["rpm"]:
        return PackageManager.RPM
    if found["dpkg"]:
        return PackageManager.DPKG
    return PackageManager.NONE


def resolve_package_manager(found: PackageManager, prefer: Optional[PackageManager], reporter: Reporter) -> PackageManager:
    """Reduce the detected set to the single package manager the run will query."""

    if found is PackageManager.NONE:
        raise NoPackageManager("Could not find package manager. Manual intervention is required")
    if found is not PackageManager.BOTH:
        return found
    if prefer in (PackageManager.RPM, PackageManager.DPKG):
        reporter.warn(f"Found more than one package manager. Being forced to {prefer.value} by options.")
        return prefer
    raise AmbiguousPackageManager(
        "Found more than one package manager. Try adding --prefer-dpkg or --prefer-rpm to the command line"
    )


def query_package(manager: PackageManager, settings: Settings, runner: CommandRunner) -> bool:
    name = settings.package_name
    if manager is PackageManager.RPM:
        command = ["rpm", "-qa", name]
    else:
        command = ["dpkg-query", "--show", name]
    try:
        result = runner.run(command)
    except OSError as exc:
        logger.warning("Could not run %s: %s", command[0], exc)
        return False
    if manager is PackageManager.RPM:
        return result.ok and name in result.stdout
    return result.ok


def verify_installation(manager: PackageManager, settings: Settings, runner: CommandRunner, reporter: Reporter) -> bool:
    """Check the package database and the filesystem for the client.

    Returns whether the package manager knows about the package.  A missing
    install directory or binary is fatal; a package-manager miss is not.
    """

    reporter.info(f"Searching for {settings.package_name} package...")
    tool = "rpm" if manager is PackageManager.RPM else "dpkg-query"
    registered = query_package(manager, settings, runner)
    if registered:
        reporter.info(f"Detected installed {settings.package_name} package by {tool}")
    else:
        reporter.warn(f"Couldn't find installed {settings.package_name} package by {tool}")

    if not Path(settings.install_dir).is_dir():
        raise MissingInstallDir(f"Couldn't find {settings.package_name} installation directory. Is GlobalProtect installed?")
    binary = settings.binary_path
    if not (binary.is_file() and os.access(binary, os.X_OK)):
        raise MissingBinary(f"Couldn't find {settings.binary_name} binary. Is GlobalProtect installed?")
    reporter.info(f"Detected {settings.binary_name} binary")

    if not registered:
        reporter.warn("GlobalProtect installation was found, but not by package manager. Expect errors from this tool!")
    return registered


def _init_points_at_systemd(runner: CommandRunner) -> bool:
    init_path = runner.which("init")
    if not init_path:
        return False
    try:
        target = Path(init_path).resolve()
    except OSError:
        return False
    return target.name == "systemd"


def detect_init_system(runner: CommandRunner, reporter: Reporter) -> InitSystem:
    """Decide between systemd and SysV init.

    systemd is only assumed when systemctl exists and reports the overall
    system state as running or degraded.
    """

    systemctl = runner.which("systemctl")
    if not systemctl:
        reporter.info("Assuming SysV Init-based system")
        return InitSystem.SYSV
    result = runner.run([systemctl, "--no-pager", "show"])
    if not any(state in result.stdout for state in RUNNING_STATES):
        reporter.info("Assuming SysV Init-based system")
        return InitSystem.SYSV
    if _init_points_at_systemd(runner):
        reporter.info("Detected systemd-based system")
    else:
        reporter.warn("systemd seems to be present, but init doesn't seem to symlink to it. Expect this not to work!")
    return InitSystem.SYSTEMD


def locate_unit_file(settings: Settings, runner: CommandRunner, reporter: Reporter) -> Path:
    unit = settings.unit_name
    status = runner.run(["systemctl", "--no-pager", "status", unit])
    if "could not be found" in status.output:
        raise MissingUnit(f"Couldn't find systemd unit file {unit}")
    show = runner.run(["systemctl", "--no-pager", "show", unit])
    fragment = ""
    for line in show.stdout.splitlines():
        if line.startswith("FragmentPath="):
            fragment = line[len("FragmentPath="):].strip()
            break
    if not fragment:
        raise UnresolvedUnit(f"Couldn't determine location of systemd unit file {unit}")
    reporter.info(f"systemd unit file {unit} located at {fragment}")
    return Path(fragment)


def locate_init_script(settings: Settings, reporter: Reporter) -> Path:
    script = Path(settings.init_script)
    if not script.is_file():
        raise MissingInitScript(f"Couldn't find initscript for {settings.service_name}")
    reporter.info(f"Initscript for {settings.service_name} located at {script}")
    return script


def check_profile_script(settings: Settings) -> Path:
    script = Path(settings.sh_profile)
    if not script.is_file():
        raise MissingProfileScript(f"Couldn't find profile.d script {script}")
    return script


def count_certificates(directory: Path) -> int:
    return sum(1 for entry in directory.iterdir() if entry.name.endswith(CERT_SUFFIXES))


def _candidate_matches(candidate: CaCandidate, threshold: int) -> bool:
    path = Path(candidate.path)
    if not candidate.is_directory:
        return path.is_file()
    if not path.is_dir():
        return False
    try:
        return count_certificates(path) > threshold
    except OSError as exc:
        logger.warning("Unable to list %s: %s", path, exc)
        return False


def detect_ca_location(settings: Settings, reporter: Reporter) -> CaLocation:
    """Return the first configured candidate that holds CA certificates."""

    for candidate in settings.ca_candidates:
        if _candidate_matches(candidate, settings.cert_dir_threshold):
            location = CaLocation(candidate.variable, candidate.path)
            reporter.info(f"Detected configuration setting for {location.variable} to be {location.path}")
            return location
        logger.debug("CA candidate %s rejected", candidate.path)
    raise NoCaLocation("Unable to detect Certificate Authority certificate locations. Manual intervention is required")
