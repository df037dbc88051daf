"""Platform API constants and response-envelope validation."""
from __future__ import annotations

import logging
from enum import IntEnum
from typing import Any, Dict

from .errors import RemoteError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v2"


class Status(IntEnum):
    OK = 100
    OK_DEPLOY_STARTED = 101
    OK_PARTIALLY = 102
    ERROR_GENERIC = 1000
    ERROR_CAPTAIN_NOT_INITIALIZED = 1001
    ERROR_USER_NOT_INITIALIZED = 1101
    ERROR_NOT_AUTHORIZED = 1102
    ERROR_ALREADY_EXIST = 1103
    ERROR_BAD_NAME = 1104
    WRONG_PASSWORD = 1105
    AUTH_TOKEN_INVALID = 1106
    VERIFICATION_FAILED = 1107
    ILLEGAL_OPERATION = 1108
    BUILD_ERROR = 1109
    ILLEGAL_PARAMETER = 1110
    NOT_FOUND = 1111
    AUTHENTICATION_FAILED = 1112
    PASSWORD_BACK_OFF = 1113


OK_STATUSES = {Status.OK, Status.OK_DEPLOY_STARTED, Status.OK_PARTIALLY}

ERROR_REASONS = {
    Status.ERROR_GENERIC: "Generic",
    Status.ERROR_CAPTAIN_NOT_INITIALIZED: "Captain not initialized",
    Status.ERROR_USER_NOT_INITIALIZED: "User not initialized",
    Status.ERROR_NOT_AUTHORIZED: "Not authorized",
    Status.ERROR_ALREADY_EXIST: "Already exist",
    Status.ERROR_BAD_NAME: "Bad name",
    Status.WRONG_PASSWORD: "Wrong password",
    Status.AUTH_TOKEN_INVALID: "Auth Token invalid",
    Status.VERIFICATION_FAILED: "Verification failed",
    Status.ILLEGAL_OPERATION: "Illegal operation",
    Status.BUILD_ERROR: "Build Error",
    Status.ILLEGAL_PARAMETER: "Illegal parameter",
    Status.NOT_FOUND: "Not found",
    Status.AUTHENTICATION_FAILED: "Authentication failed",
    Status.PASSWORD_BACK_OFF: "Password back off",
}


class Paths:
    LOGIN = "/login"
    SYSTEM_INFO = "/user/system/info"
    APP_LIST = "/user/apps/appDefinitions"
    APP_REGISTER = "/user/apps/appDefinitions/register"
    APP_DELETE = "/user/apps/appDefinitions/delete"
    ADD_CUSTOM_DOMAIN = "/user/apps/appDefinitions/customdomain"
    UPDATE_APP = "/user/apps/appDefinitions/update"
    ENABLE_SSL = "/user/apps/appDefinitions/enablecustomdomainssl"
    APP_DATA = "/user/apps/appData"
    ONECLICK_LIST = "/user/oneclick/template/list"


def validate_response(payload: Any) -> Dict[str, Any]:
    """Return the ``data`` member of an OK envelope or raise RemoteError."""
    if not isinstance(payload, dict) or "status" not in payload:
        raise RemoteError("Not a valid response!")
    raw_status = payload.get("status")
    description = str(payload.get("description") or "")
    try:
        status = Status(int(raw_status))
    except (TypeError, ValueError) as exc:
        raise RemoteError("Not a valid response!", None, description) from exc
    if status in OK_STATUSES:
        data = payload.get("data")
        return data if isinstance(data, dict) else {}
    logger.debug("Platform returned status %s: %s", int(status), description)
    raise RemoteError(ERROR_REASONS[status], int(status), description)
