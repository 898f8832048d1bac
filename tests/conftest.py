"""Shared fakes for exercising gp-finalise without touching the host."""

from __future__ import annotations

import io
import stat
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest
from rich.console import Console

from gp_finalise.core.settings import CaCandidate, Settings
from gp_finalise.utils.console import Reporter
from gp_finalise.utils.processes import CommandResult

PROFILE_SCRIPT = """#!/bin/sh
PANGPA=/opt/paloaltonetworks/globalprotect/PanGPA
PANGPA_PID=$(pgrep -u $USER PanGPA)

if [ -z "$PANGPA_PID" ]; then
    $PANGPA start &
fi
"""

UNIT_FILE = """[Unit]
Description=GlobalProtect VPN client daemon
After=network.target

[Service]
ExecStart=/opt/paloaltonetworks/globalprotect/PanGPS
Restart=always

[Install]
WantedBy=multi-user.target
"""

INIT_SCRIPT = """#!/bin/sh
### BEGIN INIT INFO
# Provides: gpd
### END INIT INFO
DAEMON=/opt/paloaltonetworks/globalprotect/PanGPS
NAME=gpd

case "$1" in
  start) $DAEMON & ;;
esac
"""


class FakeRunner:
    """Stands in for CommandRunner; answers from a table keyed by argv."""

    def __init__(self, which: Optional[Dict[str, str]] = None) -> None:
        self.paths = dict(which or {})
        self.responses: Dict[Tuple[str, ...], CommandResult] = {}
        self.calls: List[List[str]] = []

    def which(self, name: str) -> Optional[str]:
        return self.paths.get(name)

    def respond(self, argv: Sequence[str], returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.responses[tuple(argv)] = CommandResult(list(argv), returncode, stdout, stderr)

    def run(self, command: Sequence[str]) -> CommandResult:
        argv = [str(part) for part in command]
        self.calls.append(argv)
        return self.responses.get(tuple(argv), CommandResult(argv, 0))


class CapturingReporter(Reporter):
    """Reporter writing to in-memory buffers."""

    def __init__(self) -> None:
        self.out = io.StringIO()
        self.err = io.StringIO()
        super().__init__(
            color=False,
            console=Console(file=self.out, highlight=False, no_color=True, width=200),
            err_console=Console(file=self.err, highlight=False, no_color=True, width=200),
        )

    @property
    def text(self) -> str:
        return self.out.getvalue() + self.err.getvalue()


def write_certificates(directory: Path, count: int, suffix: str = ".pem") -> None:
    directory.mkdir(parents=True, exist_ok=True)
    for index in range(count):
        (directory / f"ca-{index}{suffix}").write_text("-----BEGIN CERTIFICATE-----\n", encoding="utf-8")


@pytest.fixture()
def reporter() -> CapturingReporter:
    return CapturingReporter()


@pytest.fixture()
def settings(tmp_path) -> Settings:
    """Settings pointing every path into an installed-looking sandbox."""

    install_dir = tmp_path / "opt" / "globalprotect"
    install_dir.mkdir(parents=True)
    binary = install_dir / "globalprotect"
    binary.write_text("#!/bin/sh\n", encoding="utf-8")
    binary.chmod(binary.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    profile_dir = tmp_path / "etc" / "profile.d"
    profile_dir.mkdir(parents=True)
    (profile_dir / "PanMSInit.sh").write_text(PROFILE_SCRIPT, encoding="utf-8")

    init_dir = tmp_path / "etc" / "init.d"
    init_dir.mkdir(parents=True)
    (init_dir / "gpd").write_text(INIT_SCRIPT, encoding="utf-8")

    return Settings(
        install_dir=str(install_dir),
        init_script=str(init_dir / "gpd"),
        sh_profile=str(profile_dir / "PanMSInit.sh"),
        csh_profile=str(profile_dir / "PanMSInit.csh"),
        ca_candidates=[
            CaCandidate("SSL_CERT_FILE", str(tmp_path / "pki" / "ca-bundle.crt")),
            CaCandidate("SSL_CERT_DIR", str(tmp_path / "usr-lib-ssl" / "certs")),
            CaCandidate("SSL_CERT_DIR", str(tmp_path / "etc-ssl" / "certs")),
        ],
    )


@pytest.fixture()
def ca_bundle(settings) -> Path:
    bundle = Path(settings.ca_candidates[0].path)
    bundle.parent.mkdir(parents=True)
    bundle.write_text("-----BEGIN CERTIFICATE-----\n", encoding="utf-8")
    return bundle
