"""Run settings and their YAML persistence."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List

import yaml

from ..utils.logging import get_logger
from .errors import ConfigError

logger = get_logger("settings")

SYSTEM_CONFIG = Path("/etc/gp-finalise.yaml")

CERT_FILE_VARIABLE = "SSL_CERT_FILE"
CERT_DIR_VARIABLE = "SSL_CERT_DIR"


@dataclass(frozen=True)
class CaCandidate:
    """A place where the system CA certificates may live."""

    variable: str
    path: str

    @property
    def is_directory(self) -> bool:
        return self.variable == CERT_DIR_VARIABLE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CaCandidate":
        if not isinstance(data, dict):
            raise ConfigError(f"CA candidate entries must be mappings with variable and path, not {data!r}")
        variable = data.get("variable", CERT_FILE_VARIABLE)
        if variable not in (CERT_FILE_VARIABLE, CERT_DIR_VARIABLE):
            raise ConfigError(f"Unsupported CA variable {variable!r}; use {CERT_FILE_VARIABLE} or {CERT_DIR_VARIABLE}")
        if not data.get("path"):
            raise ConfigError("CA candidate entries need a path")
        return cls(variable=variable, path=str(data["path"]))


def default_ca_candidates() -> List[CaCandidate]:
    return [
        CaCandidate(CERT_FILE_VARIABLE, "/etc/pki/tls/certs/ca-bundle.crt"),
        CaCandidate(CERT_DIR_VARIABLE, "/usr/lib/ssl/certs"),
        CaCandidate(CERT_DIR_VARIABLE, "/etc/ssl/certs"),
    ]


@dataclass
class Settings:
    """Paths, names and thresholds consumed by a finalisation run."""

    package_name: str = "globalprotect"
    install_dir: str = "/opt/paloaltonetworks/globalprotect"
    binary_name: str = "globalprotect"
    agent_name: str = "PanGPA"
    service_name: str = "gpd"
    init_script: str = "/etc/init.d/gpd"
    sh_profile: str = "/etc/profile.d/PanMSInit.sh"
    csh_profile: str = "/etc/profile.d/PanMSInit.csh"
    portal: str = "globalprotect.soton.ac.uk"
    # More certificates than this must be present for a directory to count.
    cert_dir_threshold: int = 10
    ca_candidates: List[CaCandidate] = field(default_factory=default_ca_candidates)

    @property
    def binary_path(self) -> Path:
        return Path(self.install_dir) / self.binary_name

    @property
    def agent_path(self) -> Path:
        return Path(self.install_dir) / self.agent_name

    @property
    def unit_name(self) -> str:
        return f"{self.service_name}.service"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: "Settings | None" = None) -> "Settings":
        values = (base or cls()).to_dict()
        known = {f.name for f in fields(cls)}
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown setting %r", key)
                continue
            values[key] = value
        try:
            values["cert_dir_threshold"] = int(values["cert_dir_threshold"])
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"cert_dir_threshold must be an integer: {exc}") from exc
        candidates = values.get("ca_candidates") or []
        if not isinstance(candidates, list):
            raise ConfigError("ca_candidates must be a list")
        values["ca_candidates"] = [CaCandidate.from_dict(entry) for entry in candidates]
        for key in known - {"cert_dir_threshold", "ca_candidates"}:
            values[key] = str(values[key])
        return cls(**values)


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Could not read {path}: {exc.strerror}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping of settings")
    return data


def load_settings(config_path: Path | None = None, system_config: Path = SYSTEM_CONFIG) -> Settings:
    """Return defaults overlaid with the system file and then ``config_path``."""

    settings = Settings()
    if system_config.exists():
        logger.info("Loading settings from %s", system_config)
        settings = Settings.from_dict(_read_yaml(system_config), base=settings)
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigError(f"Configuration file {config_path} does not exist")
        logger.info("Loading settings from %s", config_path)
        settings = Settings.from_dict(_read_yaml(config_path), base=settings)
    return settings
