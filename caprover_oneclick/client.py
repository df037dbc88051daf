"""HTTP client for the CapRover control plane."""
from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, Dict, List, Optional, Union

import requests

from .api import API_PREFIX, Paths, validate_response
from .config import PlatformConfig
from .errors import PlatformConnectionError, RemoteError
from .models import (
    AppDefinition,
    AppStatus,
    AppUpdate,
    BuildStrategy,
    OneClickAppEntry,
    SystemInfo,
)

logger = logging.getLogger(__name__)

DELETE_PAUSE = 0.2


class CapRoverClient:
    """Thin wrapper over the platform API; every call validates the envelope."""

    def __init__(
        self,
        config: PlatformConfig,
        token: str = "",
        session: Optional[requests.Session] = None,
    ):
        self.config = config
        self.token = token
        self.session = session or requests.Session()
        self.session.headers.update(self.build_headers())

    def build_headers(self) -> Dict[str, str]:
        headers = {
            "content-type": "application/json;charset=UTF-8",
            "accept": "application/json, text/plain, */*",
            "x-namespace": self.config.namespace,
        }
        if self.token:
            headers["x-captain-auth"] = self.token
        return headers

    def build_url(self, path: str) -> str:
        return f"{self.config.base_url}{API_PREFIX}{path}"

    def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = self.build_url(path)
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                params=params,
                timeout=self.config.request_timeout,
            )
        except requests.exceptions.RequestException as exc:
            raise PlatformConnectionError(f"Could not reach {self.config.address}: {exc}") from exc
        try:
            body = response.json()
        except ValueError as exc:
            raise PlatformConnectionError(
                f"Unexpected response from {path}", response.status_code
            ) from exc
        return validate_response(body)

    @classmethod
    def login(
        cls,
        config: PlatformConfig,
        session: Optional[requests.Session] = None,
    ) -> "CapRoverClient":
        logger.info("Logging in to %s", config.address)
        client = cls(config, session=session)
        data = client._request("POST", Paths.LOGIN, {"password": config.password})
        token = data.get("token")
        if not token:
            raise RemoteError("Login response did not include a token")
        client.token = str(token)
        client.session.headers["x-captain-auth"] = client.token
        return client

    def get_system_info(self) -> SystemInfo:
        return SystemInfo.model_validate(self._request("GET", Paths.SYSTEM_INFO))

    def get_root_domain(self) -> str:
        return self.get_system_info().root_domain

    def list_apps(self) -> List[AppDefinition]:
        data = self._request("GET", Paths.APP_LIST)
        apps = [AppDefinition.model_validate(item) for item in data.get("appDefinitions") or []]
        logger.debug("Got %d apps", len(apps))
        return apps

    def get_app_data(self, app_name: str) -> Optional[AppDefinition]:
        return next((app for app in self.list_apps() if app.app_name == app_name), None)

    def get_application_status(self, app_name: str) -> AppStatus:
        data = self._request("GET", f"{Paths.APP_DATA}/{app_name}")
        return AppStatus.model_validate(data)

    def create_application(self, app_name: str, has_persistent_data: bool = False) -> None:
        self._request(
            "POST",
            Paths.APP_REGISTER,
            {"appName": app_name, "hasPersistentData": has_persistent_data},
            params={"detached": 1},
        )
        logger.info("Created app %s", app_name)

    def update_application(self, update: AppUpdate) -> None:
        self._request("POST", Paths.UPDATE_APP, update.to_payload())
        logger.debug("Updated app %s", update.app_name)

    def deploy_build(self, app_name: str, strategy: BuildStrategy) -> None:
        payload = {
            "captainDefinitionContent": json.dumps(strategy.captain_definition()),
            "gitHash": "",
        }
        self._request("POST", f"{Paths.APP_DATA}/{app_name}", payload)
        logger.info("Started build for app %s", app_name)

    def delete_application(self, app_name: str, delete_volumes: bool = False) -> None:
        payload: Dict[str, Any] = {"appName": app_name}
        if delete_volumes:
            app = self.get_app_data(app_name)
            payload["volumes"] = app.volume_names() if app else []
        self._request("POST", Paths.APP_DELETE, payload)
        logger.info("Deleted app %s", app_name)

    def delete_applications_matching(
        self,
        pattern: Union[str, "re.Pattern[str]"],
        delete_volumes: bool = False,
    ) -> List[str]:
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        deleted: List[str] = []
        for app in self.list_apps():
            if regex.search(app.app_name):
                self.delete_application(app.app_name, delete_volumes)
                deleted.append(app.app_name)
                time.sleep(DELETE_PAUSE)
        return deleted

    def add_custom_domain(self, app_name: str, custom_domain: str) -> None:
        self._request(
            "POST",
            Paths.ADD_CUSTOM_DOMAIN,
            {"appName": app_name, "customDomain": custom_domain},
        )
        logger.info("Added domain %s to app %s", custom_domain, app_name)

    def enable_ssl(self, app_name: str, custom_domain: str) -> None:
        self._request(
            "POST",
            Paths.ENABLE_SSL,
            {"appName": app_name, "customDomain": custom_domain},
        )
        logger.info("Enabled SSL for %s on app %s", custom_domain, app_name)

    def list_one_click_templates(self) -> List[OneClickAppEntry]:
        data = self._request("GET", Paths.ONECLICK_LIST)
        return [OneClickAppEntry.model_validate(item) for item in data.get("oneClickApps") or []]

    def fetch_template_source(self, name: str) -> str:
        """Download the raw template; the template host gets no auth headers."""
        url = f"{self.config.templates_url}{name}.yml"
        try:
            response = requests.get(url, timeout=self.config.request_timeout)
        except requests.exceptions.RequestException as exc:
            raise PlatformConnectionError(f"Could not fetch template {name}: {exc}") from exc
        if response.status_code != 200:
            raise RemoteError(f"Could not fetch template {name}", response.status_code)
        return response.text
