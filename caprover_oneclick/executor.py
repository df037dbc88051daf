"""Deploy a single template service onto the platform."""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Protocol

from .errors import BuildFailedError
from .models import AppStatus, AppUpdate, BuildStrategy, ServiceSpec
from .poller import ReadinessPoller

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY = 0.5


class PlatformClient(Protocol):
    def create_application(self, app_name: str, has_persistent_data: bool = False) -> None:
        ...

    def update_application(self, update: AppUpdate) -> None:
        ...

    def deploy_build(self, app_name: str, strategy: BuildStrategy) -> None:
        ...

    def get_application_status(self, app_name: str) -> AppStatus:
        ...


class DeploymentExecutor:
    """Create, configure and build one service, waiting for each step."""

    def __init__(
        self,
        client: PlatformClient,
        poller: Optional[ReadinessPoller] = None,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.poller = poller or ReadinessPoller()
        self.settle_delay = settle_delay
        self.sleep = sleep

    def _await_ready(self, app_name: str) -> AppStatus:
        return self.poller.wait(lambda: self.client.get_application_status(app_name), app_name)

    def deploy(self, name: str, spec: ServiceSpec) -> None:
        self.client.create_application(name, spec.has_persistent_data)
        self._await_ready(name)

        self.client.update_application(AppUpdate.for_service(spec))

        self.client.deploy_build(name, spec.build)
        self._await_ready(name)
        # Readiness and build success are separate signals.
        if self.settle_delay > 0:
            self.sleep(self.settle_delay)
        status = self.client.get_application_status(name)
        if status.is_build_failed:
            raise BuildFailedError(name)
        logger.debug("Build for app %s is not failed", name)
