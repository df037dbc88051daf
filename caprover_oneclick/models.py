"""Pydantic data models shared across the one-click deployer."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def as_text(value: Any) -> str:
    # YAML turns `true`/`8080` into bool/int; the platform expects strings.
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class VariableDefinition(_Model):
    id: str
    label: str = ""
    default_value: str = Field(default="", alias="defaultValue")
    description: str = ""
    valid_regex: Optional[str] = Field(default=None, alias="validRegex")

    @field_validator("label", "default_value", "description", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return as_text(value)

    @field_validator("valid_regex", mode="before")
    @classmethod
    def _coerce_regex(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value)


class HostVolume(_Model):
    host_path: str = Field(alias="hostPath")
    container_path: str = Field(alias="containerPath")


class NamedVolume(_Model):
    volume_name: str = Field(alias="volumeName")
    container_path: str = Field(alias="containerPath")


VolumeSpec = Union[HostVolume, NamedVolume]


class EnvVar(_Model):
    key: str
    value: str = ""


class ImageBuild(_Model):
    image: str

    def captain_definition(self) -> Dict[str, Any]:
        return {"schemaVersion": 2, "imageName": self.image}


class DockerfileBuild(_Model):
    lines: List[str]

    def captain_definition(self) -> Dict[str, Any]:
        return {"schemaVersion": 2, "dockerfileLines": list(self.lines)}


BuildStrategy = Union[ImageBuild, DockerfileBuild]


class ServiceSpec(_Model):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    build: BuildStrategy
    depends_on: List[str] = Field(default_factory=list)
    volumes: List[VolumeSpec] = Field(default_factory=list)
    environment: Dict[str, str] = Field(default_factory=dict)
    not_expose_as_web_app: bool = False
    container_http_port: int = 80

    @property
    def image(self) -> Optional[str]:
        return self.build.image if isinstance(self.build, ImageBuild) else None

    @property
    def dockerfile_lines(self) -> Optional[List[str]]:
        return self.build.lines if isinstance(self.build, DockerfileBuild) else None

    @property
    def has_persistent_data(self) -> bool:
        return bool(self.volumes)

    def env_vars(self) -> List[EnvVar]:
        return [EnvVar(key=key, value=value) for key, value in self.environment.items()]


class TemplateInfo(_Model):
    display_name: str = ""
    description: str = ""
    documentation: str = ""
    start_instructions: str = ""
    end_instructions: str = ""


class Template(_Model):
    """A parsed one-click app; service order is the declared order."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    services: Dict[str, ServiceSpec]
    info: TemplateInfo = Field(default_factory=TemplateInfo)

    def service_names(self) -> List[str]:
        return list(self.services)


class AppStatus(_Model):
    is_app_building: bool = Field(default=False, alias="isAppBuilding")
    is_build_failed: bool = Field(default=False, alias="isBuildFailed")


class SystemInfo(_Model):
    root_domain: str = Field(alias="rootDomain")


class AppDefinition(_Model):
    app_name: str = Field(alias="appName")
    has_persistent_data: bool = Field(default=False, alias="hasPersistentData")
    instance_count: int = Field(default=0, alias="instanceCount")
    is_app_building: bool = Field(default=False, alias="isAppBuilding")
    volumes: List[Dict[str, Any]] = Field(default_factory=list)

    def volume_names(self) -> List[str]:
        return [str(vol["volumeName"]) for vol in self.volumes if vol.get("volumeName")]


class AppUpdate(_Model):
    """Fields accepted by the app update call; unset fields are not sent."""

    app_name: str = Field(alias="appName")
    instance_count: Optional[int] = Field(default=None, alias="instanceCount")
    volumes: Optional[List[VolumeSpec]] = None
    env_vars: Optional[List[EnvVar]] = Field(default=None, alias="envVars")
    not_expose_as_web_app: Optional[bool] = Field(default=None, alias="notExposeAsWebApp")
    container_http_port: Optional[int] = Field(default=None, alias="containerHttpPort")

    @classmethod
    def for_service(cls, spec: ServiceSpec) -> "AppUpdate":
        return cls(
            app_name=spec.name,
            instance_count=1,
            volumes=list(spec.volumes),
            env_vars=spec.env_vars(),
            not_expose_as_web_app=spec.not_expose_as_web_app,
            container_http_port=spec.container_http_port,
        )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class OneClickAppEntry(_Model):
    name: str
    base_url: str = Field(default="", alias="baseUrl")
    display_name: str = Field(default="", alias="displayName")
    is_official: bool = Field(default=False, alias="isOfficial")
    description: str = ""


class DeploymentResult(_Model):
    one_click_app: str
    app_name: str
    deployed: List[str] = Field(default_factory=list)
    display_name: str = ""
    end_instructions: str = ""

    def to_json(self) -> str:
        """Return an indented JSON representation for CLI output."""
        return self.model_dump_json(indent=2)
