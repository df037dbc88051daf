"""Connection and rollout settings."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, field_validator

from .models import as_text

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_URL = (
    "https://raw.githubusercontent.com/caprover/one-click-apps/master/public/v4/apps/"
)
ENV_OVERRIDES = {
    "CAPROVER_ADDRESS": "address",
    "CAPROVER_PASSWORD": "password",
    "CAPROVER_NAMESPACE": "namespace",
    "CAPROVER_PROTOCOL": "protocol",
}
PROTOCOLS = ("http://", "https://")


class PlatformConfig(BaseModel):
    address: str = ""
    password: str = ""
    protocol: str = "https://"
    namespace: str = "captain"
    request_timeout: float = 30.0
    poll_interval: float = 1.0
    poll_timeout: float = 60.0
    settle_delay: float = 0.5
    templates_url: str = DEFAULT_TEMPLATES_URL

    @field_validator("protocol")
    @classmethod
    def _check_protocol(cls, value: str) -> str:
        if value not in PROTOCOLS:
            raise ValueError(f"protocol must be one of {PROTOCOLS}")
        return value

    @field_validator("address")
    @classmethod
    def _strip_address(cls, value: str) -> str:
        # Address is host only; tolerate a pasted URL.
        for prefix in PROTOCOLS:
            if value.startswith(prefix):
                value = value[len(prefix):]
        return value.rstrip("/")

    @property
    def base_url(self) -> str:
        return f"{self.protocol}{self.address}"


def _read_yaml_mapping(path: Path, kind: str) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"{kind} file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"{kind} file is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"{kind} file must be a YAML mapping")
    return data


def load_config(
    path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> PlatformConfig:
    """Merge a YAML config file, environment variables and explicit overrides."""
    data: Dict[str, Any] = {}
    if path is not None:
        data.update(_read_yaml_mapping(path, "Config"))
        logger.debug("Loaded config file %s", path)
    env = os.environ if environ is None else environ
    for env_name, field_name in ENV_OVERRIDES.items():
        if env.get(env_name):
            data[field_name] = env[env_name]
    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value
    return PlatformConfig.model_validate(data)


def load_variables_file(path: Path) -> Dict[str, str]:
    data = _read_yaml_mapping(path, "Variables")
    return {str(key): as_text(value) for key, value in data.items()}
