"""High level orchestration consumed by the CLI and the web surface."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from .client import CapRoverClient
from .config import PlatformConfig
from .errors import SchedulingError, TemplateNotFoundError
from .executor import DeploymentExecutor
from .models import DeploymentResult, OneClickAppEntry, Template
from .parser import load_template_text, parse_template, parse_variable_definitions
from .poller import ReadinessPoller
from .scheduler import run_schedule
from .substitute import substitute
from .variables import Prompt, ResolvedVariables, generate_random_hex, resolve_variables

logger = logging.getLogger(__name__)

APP_NAME_VARIABLE = "$$cap_appname"
ROOT_DOMAIN_VARIABLE = "$$cap_root_domain"


@dataclass
class RenderedApp:
    one_click_app: str
    app_name: str
    variables: ResolvedVariables
    text: str
    template: Template


def build_app_name(namespace: str, one_click_app_name: str) -> str:
    return f"{namespace}-{one_click_app_name}"


def find_one_click_app(client: CapRoverClient, name: str) -> OneClickAppEntry:
    for entry in client.list_one_click_templates():
        if entry.name == name:
            return entry
    raise TemplateNotFoundError(f"OneClick App {name} not found")


def render_one_click_app(
    client: CapRoverClient,
    one_click_app_name: str,
    namespace: str,
    app_variables: Mapping[str, str],
    prompt: Optional[Prompt] = None,
    template_source: Optional[str] = None,
    random_hex: Callable[[int], str] = generate_random_hex,
) -> RenderedApp:
    """Resolve and substitute a template without creating anything remotely."""
    if template_source is None:
        find_one_click_app(client, one_click_app_name)
        template_source = client.fetch_template_source(one_click_app_name)

    definitions = parse_variable_definitions(load_template_text(template_source))
    app_name = build_app_name(namespace, one_click_app_name)
    seeds = {
        APP_NAME_VARIABLE: app_name,
        ROOT_DOMAIN_VARIABLE: client.get_root_domain(),
    }
    logger.debug("Resolving %d variables for %s", len(definitions), one_click_app_name)
    variables = resolve_variables(
        definitions,
        dict(app_variables),
        synthetic_seeds=seeds,
        prompt=prompt,
        random_hex=random_hex,
    )
    text = substitute(template_source, variables)
    template = parse_template(text)
    return RenderedApp(
        one_click_app=one_click_app_name,
        app_name=app_name,
        variables=variables,
        text=text,
        template=template,
    )


def build_executor(client: CapRoverClient, config: Optional[PlatformConfig] = None) -> DeploymentExecutor:
    config = config or client.config
    poller = ReadinessPoller(interval=config.poll_interval, timeout=config.poll_timeout)
    return DeploymentExecutor(client, poller=poller, settle_delay=config.settle_delay)


def deploy_one_click_app(
    client: CapRoverClient,
    one_click_app_name: str,
    namespace: str,
    app_variables: Mapping[str, str],
    prompt: Optional[Prompt] = None,
    config: Optional[PlatformConfig] = None,
    template_source: Optional[str] = None,
    cancel_event: Optional[threading.Event] = None,
    executor: Optional[DeploymentExecutor] = None,
) -> DeploymentResult:
    """Deploy every service of a one-click app in dependency order.

    Already deployed services are left in place when a later step fails.
    """
    rendered = render_one_click_app(
        client,
        one_click_app_name,
        namespace,
        app_variables,
        prompt=prompt,
        template_source=template_source,
    )
    executor = executor or build_executor(client, config)
    state = run_schedule(rendered.template, executor.deploy, cancel_event=cancel_event)

    if set(state.deployed) != set(rendered.template.services):
        raise SchedulingError(f"Not every service of {one_click_app_name} was deployed")

    logger.info("Deployed One Click App %s as %s", one_click_app_name, rendered.app_name)
    info = rendered.template.info
    return DeploymentResult(
        one_click_app=one_click_app_name,
        app_name=rendered.app_name,
        deployed=list(state.deployed),
        display_name=info.display_name,
        end_instructions=info.end_instructions,
    )
