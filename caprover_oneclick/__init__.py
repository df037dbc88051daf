"""CapRover one-click app deployer package."""

from .models import (
    DeploymentResult,
    ServiceSpec,
    Template,
    VariableDefinition,
)
from .orchestrator import deploy_one_click_app, render_one_click_app

__all__ = [
    "DeploymentResult",
    "ServiceSpec",
    "Template",
    "VariableDefinition",
    "deploy_one_click_app",
    "render_one_click_app",
]
