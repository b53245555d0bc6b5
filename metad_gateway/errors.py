"""Client-facing error codes and the exceptions that carry them."""

from __future__ import annotations

from enum import IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    SUCCESS = 0
    NOT_FOUND = 40001
    EMPTY_INSTANCE_ID = 40008
    INVALID_REQUEST_BODY = 40009
    EMPTY_SPACE_NAME = 40010
    USER_EXISTED = 40012
    GRANT_ROLE_FAILED = 40013
    INITIAL_USER_FAILED = 40014
    INTERNAL_ERROR = 40015
    SPACE_NOT_FOUND = 40016
    UNAUTHORIZED = 40017


class GatewayError(Exception):
    """Failure reported to the caller as ``{"Code": code}``."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 403

    def __init__(self, message: str = "", *, code: Optional[ErrorCode] = None) -> None:
        super().__init__(message or self.__class__.__name__)
        if code is not None:
            self.code = code


class InvalidRequest(GatewayError):
    code = ErrorCode.INVALID_REQUEST_BODY


class InternalError(GatewayError):
    code = ErrorCode.INTERNAL_ERROR


class NotFound(GatewayError):
    code = ErrorCode.NOT_FOUND


class SpaceNotFound(GatewayError):
    code = ErrorCode.SPACE_NOT_FOUND


class UserExisted(GatewayError):
    code = ErrorCode.USER_EXISTED


class GrantRoleFailed(GatewayError):
    code = ErrorCode.GRANT_ROLE_FAILED


class InitialUserFailed(GatewayError):
    code = ErrorCode.INITIAL_USER_FAILED


class Unauthorized(GatewayError):
    code = ErrorCode.UNAUTHORIZED
    status_code = 401


# Failures of the collaborators. Services translate these into GatewayError.


class ClusterError(Exception):
    """The Kubernetes API call failed or returned something unusable."""


class MetricsQueryError(Exception):
    """The Prometheus query failed or did not report ``success``."""


class MetadError(Exception):
    def __init__(self, operation: str, detail: object = None) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"metad {operation} failed: {detail}")


class MetadUnavailable(MetadError):
    """Transport-level failure talking to metad."""


class MetadAlreadyExists(MetadError):
    pass


class MetadSpaceNotFound(MetadError):
    pass
