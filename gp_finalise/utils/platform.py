"""Platform detection helpers."""

from __future__ import annotations

from dataclasses import dataclass

import distro


@dataclass
class PlatformInfo:
    id: str
    name: str
    version: str

    def describe(self) -> str:
        version = f" {self.version}" if self.version else ""
        return f"{self.name} ({self.id}{version})"


def detect_platform() -> PlatformInfo:
    distro_id = distro.id() or "linux"
    distro_name = distro.name(pretty=True) or "Linux"
    version = distro.version() or ""
    return PlatformInfo(id=distro_id, name=distro_name, version=version)
