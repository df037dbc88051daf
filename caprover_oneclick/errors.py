"""Exception hierarchy raised while resolving and deploying one-click apps."""
from __future__ import annotations

from typing import Iterable, Optional


class OneClickError(RuntimeError):
    """Base class for every error raised by this package."""


class ValidationError(OneClickError):
    """Raised when a variable cannot be resolved to an acceptable value."""

    def __init__(self, message: str, variable_id: Optional[str] = None):
        super().__init__(message)
        self.variable_id = variable_id


class InvalidPatternError(ValidationError):
    """Raised when a variable's validRegex cannot be parsed or compiled."""


class VariableRequiredError(ValidationError):
    """Raised when neither a value nor a usable default is available."""


class InvalidValueError(ValidationError):
    """Raised when a supplied value does not match the variable pattern."""


class TemplateError(ValidationError):
    """Raised when a one-click template is missing or malformed."""


class SchedulingError(OneClickError):
    """Base class for dependency ordering failures."""


class CyclicDependencyError(SchedulingError):
    def __init__(self, pending: Iterable[str]):
        self.pending = sorted(pending)
        super().__init__(
            "No service could be deployed; cyclic dependency between: "
            + ", ".join(self.pending)
        )


class UnresolvableServiceError(SchedulingError):
    def __init__(self, service: str, dependency: str):
        self.service = service
        self.dependency = dependency
        super().__init__(f"Service {service} depends on undeclared service {dependency}")


class RemoteError(OneClickError):
    """Raised when the platform rejects a call."""

    def __init__(self, reason: str, status: Optional[int] = None, description: str = ""):
        message = reason
        if description:
            message = f"{reason}: {description}"
        if status is not None:
            message = f"{message} (status {status})"
        super().__init__(message)
        self.reason = reason
        self.status = status
        self.description = description


class PlatformConnectionError(RemoteError):
    """Raised when the platform cannot be reached or answers garbage."""


class BuildFailedError(OneClickError):
    def __init__(self, app_name: str):
        super().__init__(f"Build failed for app {app_name}")
        self.app_name = app_name


class ReadinessTimeoutError(OneClickError, TimeoutError):
    def __init__(self, app_name: str, timeout: float):
        super().__init__(f"App {app_name} was still building after {timeout:g}s")
        self.app_name = app_name
        self.timeout = timeout


class DeploymentCancelled(OneClickError):
    """Raised when a deployment run is cancelled between services."""


class TemplateNotFoundError(TemplateError):
    """Raised when the one-click catalog has no app with the requested name."""
