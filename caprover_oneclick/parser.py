"""Parsing utilities to turn one-click template text into typed models."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import ValidationError as ModelValidationError

from .errors import TemplateError
from .models import (
    BuildStrategy,
    DockerfileBuild,
    HostVolume,
    ImageBuild,
    NamedVolume,
    ServiceSpec,
    Template,
    TemplateInfo,
    VariableDefinition,
    VolumeSpec,
    as_text,
)

logger = logging.getLogger(__name__)

DEFAULT_CONTAINER_HTTP_PORT = 80


def load_template_text(text: str) -> Dict[str, Any]:
    """Parse template YAML into a mapping."""
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise TemplateError(f"Template is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise TemplateError("Template did not produce a mapping")
    return data


def load_template_file(path: Path) -> str:
    if not path.exists():
        raise FileNotFoundError(f"Template file not found: {path}")
    logger.info("Loading template file: %s", path)
    return path.read_text(encoding="utf-8")


def _one_click_block(data: Dict[str, Any]) -> Dict[str, Any]:
    block = data.get("caproverOneClickApp") or {}
    if not isinstance(block, dict):
        raise TemplateError("caproverOneClickApp must be a mapping")
    return block


def parse_variable_definitions(data: Dict[str, Any]) -> List[VariableDefinition]:
    raw_variables = _one_click_block(data).get("variables") or []
    if not isinstance(raw_variables, list):
        raise TemplateError("caproverOneClickApp.variables must be a list")
    definitions: List[VariableDefinition] = []
    for entry in raw_variables:
        if not isinstance(entry, dict) or not entry.get("id"):
            raise TemplateError(f"Variable entry without an id: {entry!r}")
        try:
            definitions.append(VariableDefinition.model_validate(entry))
        except ModelValidationError as exc:
            raise TemplateError(f"Invalid variable entry {entry!r}: {exc}") from exc
    return definitions


def parse_template_info(data: Dict[str, Any]) -> TemplateInfo:
    block = _one_click_block(data)
    instructions = block.get("instructions") or {}
    if not isinstance(instructions, dict):
        instructions = {}
    return TemplateInfo(
        display_name=str(block.get("displayName") or ""),
        description=str(block.get("description") or ""),
        documentation=str(block.get("documentation") or ""),
        start_instructions=str(instructions.get("start") or ""),
        end_instructions=str(instructions.get("end") or ""),
    )


def parse_volume_entry(entry: Any) -> VolumeSpec:
    """Split ``label-or-path:container-path``; a leading ``/`` means host path."""
    if not isinstance(entry, str):
        raise TemplateError(f"Volume declaration must be a string: {entry!r}")
    text = entry.strip()
    parts = text.split(":")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise TemplateError(f"Volume declaration needs a container path: {text!r}")
    label_or_host, container_path = parts[0], parts[1]
    if label_or_host.startswith("/"):
        return HostVolume(host_path=label_or_host, container_path=container_path)
    return NamedVolume(volume_name=label_or_host, container_path=container_path)


def extract_environment(service: Dict[str, Any]) -> Dict[str, str]:
    env_data = service.get("environment") or {}
    env: Dict[str, str] = {}
    if isinstance(env_data, dict):
        for key, value in env_data.items():
            env[str(key)] = as_text(value)
        return env
    for entry in env_data:
        key, _, value = as_text(entry).partition("=")
        key = key.strip()
        if key:
            env[key] = value
    return env


def extract_depends_on(service: Dict[str, Any]) -> List[str]:
    raw = service.get("depends_on") or []
    if isinstance(raw, str):
        raw = [raw]
    names: List[str] = []
    for name in raw:
        text = str(name)
        if text not in names:
            names.append(text)
    return names


def _build_strategy(name: str, service: Dict[str, Any], extras: Dict[str, Any]) -> BuildStrategy:
    image = service.get("image")
    lines = extras.get("dockerfileLines")
    if image and lines:
        raise TemplateError(f"Service {name} declares both image and dockerfileLines")
    if image:
        return ImageBuild(image=str(image))
    if lines:
        if isinstance(lines, str):
            lines = [lines]
        return DockerfileBuild(lines=[str(line) for line in lines])
    raise TemplateError(f"Service {name} needs either image or dockerfileLines")


def _as_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def build_service_spec(name: str, service: Any) -> ServiceSpec:
    if service is None:
        service = {}
    if not isinstance(service, dict):
        raise TemplateError(f"Service {name} must be a mapping")
    extras = service.get("caproverExtra") or {}
    if not isinstance(extras, dict):
        raise TemplateError(f"caproverExtra of service {name} must be a mapping")

    port = extras.get("containerHttpPort")
    try:
        container_http_port = int(port) if port not in (None, "") else DEFAULT_CONTAINER_HTTP_PORT
    except (TypeError, ValueError) as exc:
        raise TemplateError(f"Service {name} has invalid containerHttpPort {port!r}") from exc

    return ServiceSpec(
        name=name,
        build=_build_strategy(name, service, extras),
        depends_on=extract_depends_on(service),
        volumes=[parse_volume_entry(entry) for entry in service.get("volumes") or []],
        environment=extract_environment(service),
        not_expose_as_web_app=_as_flag(extras.get("notExposeAsWebApp", False)),
        container_http_port=container_http_port,
    )


def build_template(data: Dict[str, Any]) -> Template:
    services = data.get("services") or {}
    if not isinstance(services, dict) or not services:
        raise TemplateError("Template must include services")
    specs = {str(name): build_service_spec(str(name), svc) for name, svc in services.items()}
    return Template(services=specs, info=parse_template_info(data))


def parse_template(text: str) -> Template:
    return build_template(load_template_text(text))
