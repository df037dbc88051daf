"""Dependency-ordered rollout of template services.

Services are deployed one at a time. Each pass walks the template in
declared order and deploys every service whose dependencies are already
deployed; passes repeat until everything is deployed. A pass that makes no
progress means the remaining services can never become eligible.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Set

from .errors import CyclicDependencyError, DeploymentCancelled, UnresolvableServiceError
from .models import ServiceSpec, Template

logger = logging.getLogger(__name__)

DeployFn = Callable[[str, ServiceSpec], None]


@dataclass
class DeploymentState:
    pending: Set[str]
    deployed: List[str] = field(default_factory=list)

    @classmethod
    def for_template(cls, template: Template) -> "DeploymentState":
        return cls(pending=set(template.services))

    @property
    def complete(self) -> bool:
        return not self.pending

    def is_eligible(self, spec: ServiceSpec) -> bool:
        if spec.name not in self.pending:
            return False
        return all(dep in self.deployed for dep in spec.depends_on)

    def mark_deployed(self, name: str) -> None:
        if name in self.deployed:
            raise ValueError(f"Service {name} was already deployed")
        self.deployed.append(name)
        self.pending.discard(name)


def check_dependencies(template: Template) -> None:
    """Fail before any rollout if a service depends on an undeclared one."""
    for name, spec in template.services.items():
        for dependency in spec.depends_on:
            if dependency not in template.services:
                raise UnresolvableServiceError(name, dependency)


def run_schedule(
    template: Template,
    deploy: DeployFn,
    cancel_event: Optional[threading.Event] = None,
) -> DeploymentState:
    check_dependencies(template)
    state = DeploymentState.for_template(template)
    max_passes = len(template.services)
    passes = 0

    while not state.complete:
        passes += 1
        if passes > max_passes:
            raise CyclicDependencyError(state.pending)
        logger.debug("Scheduling pass %d, pending: %s", passes, sorted(state.pending))

        progressed = 0
        for name, spec in template.services.items():
            if not state.is_eligible(spec):
                continue
            if cancel_event is not None and cancel_event.is_set():
                raise DeploymentCancelled(f"Deployment cancelled before service {name}")
            logger.info("Deploying service %s", name)
            deploy(name, spec)
            state.mark_deployed(name)
            progressed += 1
            logger.info("Deployed service %s", name)

        if not progressed:
            raise CyclicDependencyError(state.pending)

    return state
