"""Thrift client for the graph meta-service (metad)."""

from __future__ import annotations

import logging
from typing import List

from nebula3.common.ttypes import ErrorCode
from nebula3.fbthrift.Thrift import TException
from nebula3.fbthrift.protocol import TBinaryProtocol
from nebula3.fbthrift.transport import TSocket, TTransport
from nebula3.meta import MetaService
from nebula3.meta import ttypes

from ..errors import MetadAlreadyExists, MetadError, MetadSpaceNotFound, MetadUnavailable
from ..models import RoleGrant, SpaceRef
from ..roles import Role

logger = logging.getLogger(__name__)


def _text(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _bytes(value: str) -> bytes:
    return value.encode("utf-8")


class ThriftMetadClient:
    """One open binary-protocol connection to a metad instance.

    Every call raises a ``MetadError`` subclass instead of returning a
    non-success response code.
    """

    def __init__(self, transport, connection) -> None:
        self._transport = transport
        self._connection = connection

    @classmethod
    def open(cls, host: str, port: int, timeout_seconds: float) -> "ThriftMetadClient":
        logger.info("Opening metad connection to %s:%s", host, port)
        socket = TSocket.TSocket(host, port)
        socket.setTimeout(int(timeout_seconds * 1000))
        transport = TTransport.TBufferedTransport(socket)
        protocol = TBinaryProtocol.TBinaryProtocol(transport)
        try:
            transport.open()
        except (TException, OSError) as exc:
            logger.error("Unable to open metad transport %s:%s: %s", host, port, exc)
            raise MetadUnavailable("open", exc) from exc
        return cls(transport, MetaService.Client(protocol))

    def close(self) -> None:
        self._transport.close()

    def _invoke(self, operation: str, method, request):
        try:
            response = method(request)
        except (TException, OSError) as exc:
            logger.error("metad %s raised %s", operation, exc)
            raise MetadUnavailable(operation, exc) from exc
        code = response.code
        if code == ErrorCode.SUCCEEDED:
            return response
        logger.warning("metad %s answered %s", operation, ErrorCode._VALUES_TO_NAMES.get(code, code))
        if code == ErrorCode.E_EXISTED:
            raise MetadAlreadyExists(operation, code)
        if code == ErrorCode.E_SPACE_NOT_FOUND:
            raise MetadSpaceNotFound(operation, code)
        raise MetadError(operation, code)

    # Spaces ---------------------------------------------------------------

    def list_spaces(self) -> List[SpaceRef]:
        response = self._invoke("listSpaces", self._connection.listSpaces, ttypes.ListSpacesReq())
        return [SpaceRef(space_id=item.id.get_space_id(), name=_text(item.name)) for item in response.spaces or []]

    def get_space_id(self, name: str) -> int:
        response = self._invoke("getSpace", self._connection.getSpace, ttypes.GetSpaceReq(space_name=_bytes(name)))
        return response.item.space_id

    def create_space(self, name: str, partition_num: int, replica_factor: int, if_not_exists: bool = True) -> None:
        properties = ttypes.SpaceDesc(
            space_name=_bytes(name),
            partition_num=partition_num,
            replica_factor=replica_factor,
        )
        request = ttypes.CreateSpaceReq(properties=properties, if_not_exists=if_not_exists)
        self._invoke("createSpace", self._connection.createSpace, request)

    # Accounts -------------------------------------------------------------

    def list_users(self) -> List[str]:
        response = self._invoke("listUsers", self._connection.listUsers, ttypes.ListUsersReq())
        return [_text(account) for account in (response.users or {})]

    def create_user(self, account: str, if_not_exists: bool = False) -> None:
        request = ttypes.CreateUserReq(account=_bytes(account), encoded_pwd=b"", if_not_exists=if_not_exists)
        self._invoke("createUser", self._connection.createUser, request)

    def drop_user(self, account: str, if_exists: bool = False) -> None:
        request = ttypes.DropUserReq(account=_bytes(account), if_exists=if_exists)
        self._invoke("dropUser", self._connection.dropUser, request)

    # Roles ----------------------------------------------------------------

    def get_user_roles(self, account: str) -> List[RoleGrant]:
        response = self._invoke(
            "getUserRoles",
            self._connection.getUserRoles,
            ttypes.GetUserRolesReq(account=_bytes(account)),
        )
        return [
            RoleGrant(account=_text(item.user_id), space_id=item.space_id, role=Role(item.role_type))
            for item in response.roles or []
        ]

    def grant_role(self, account: str, space_id: int, role: Role) -> None:
        item = ttypes.RoleItem(user_id=_bytes(account), space_id=space_id, role_type=int(role))
        self._invoke("grantRole", self._connection.grantRole, ttypes.GrantRoleReq(role_item=item))

    def revoke_role(self, account: str, space_id: int, role: Role) -> None:
        item = ttypes.RoleItem(user_id=_bytes(account), space_id=space_id, role_type=int(role))
        self._invoke("revokeRole", self._connection.revokeRole, ttypes.RevokeRoleReq(role_item=item))
