"""FastAPI surface for listing, rendering and deploying one-click apps."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .client import CapRoverClient
from .config import PlatformConfig
from .errors import OneClickError, RemoteError, TemplateNotFoundError, ValidationError
from .models import DeploymentResult
from .orchestrator import deploy_one_click_app, render_one_click_app
from .yaml_out import render_template_yaml

logger = logging.getLogger(__name__)


@dataclass
class WebState:
    client: Optional[CapRoverClient] = None
    config: Optional[PlatformConfig] = None


STATE = WebState()
app = FastAPI(title="CapRover One-Click Deployer")


class OneClickRequest(BaseModel):
    app: str
    namespace: str = "oneclick"
    variables: Dict[str, str] = Field(default_factory=dict)
    template: Optional[str] = None


class TemplateSummary(BaseModel):
    name: str
    display_name: str = ""
    description: str = ""
    is_official: bool = False


class RenderResponse(BaseModel):
    app_name: str
    services: List[str]
    yaml: str
    description: str = ""
    documentation: str = ""
    start_instructions: str = ""


def configure(client: Optional[CapRoverClient], config: Optional[PlatformConfig] = None) -> None:
    STATE.client = client
    if config is None and client is not None:
        config = client.config
    STATE.config = config


def _require_client() -> CapRoverClient:
    if STATE.client is None:
        raise HTTPException(status_code=503, detail="No platform connection is configured.")
    return STATE.client


def _to_http_error(exc: OneClickError) -> HTTPException:
    if isinstance(exc, TemplateNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, RemoteError):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


@app.get("/api/templates", response_model=List[TemplateSummary])
def list_templates() -> List[TemplateSummary]:
    client = _require_client()
    try:
        entries = client.list_one_click_templates()
    except OneClickError as exc:
        raise _to_http_error(exc) from exc
    return [
        TemplateSummary(
            name=entry.name,
            display_name=entry.display_name,
            description=entry.description,
            is_official=entry.is_official,
        )
        for entry in entries
    ]


@app.post("/api/render", response_model=RenderResponse)
def render(payload: OneClickRequest) -> RenderResponse:
    client = _require_client()
    try:
        rendered = render_one_click_app(
            client,
            payload.app,
            payload.namespace,
            payload.variables,
            template_source=payload.template,
        )
    except OneClickError as exc:
        raise _to_http_error(exc) from exc
    info = rendered.template.info
    return RenderResponse(
        app_name=rendered.app_name,
        services=rendered.template.service_names(),
        yaml=render_template_yaml(rendered.text),
        description=info.description,
        documentation=info.documentation,
        start_instructions=info.start_instructions,
    )


@app.post("/api/deploy", response_model=DeploymentResult)
def deploy(payload: OneClickRequest) -> DeploymentResult:
    client = _require_client()
    logger.info("Deploy requested for %s", payload.app)
    try:
        return deploy_one_click_app(
            client,
            payload.app,
            payload.namespace,
            payload.variables,
            config=STATE.config,
            template_source=payload.template,
        )
    except OneClickError as exc:
        raise _to_http_error(exc) from exc


def run(host: str = "127.0.0.1", port: int = 8001) -> None:
    """Launch the FastAPI app using uvicorn."""
    logger.info("Starting one-click web API on %s:%s", host, port)
    uvicorn.run("caprover_oneclick.webui:app", host=host, port=port, reload=False)
