"""Base classes for gateway services."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List

from ..clients.connector import MetadConnector
from ..config import GatewayConfig
from ..errors import ClusterError, ErrorCode, GatewayError, InternalError, MetadError
from ..models import RoleGrant
from ..roles import ROOT_SPACE_ID, Role

logger = logging.getLogger(__name__)


class RoleNotFound(LookupError):
    pass


@dataclass
class BaseService:
    config: GatewayConfig

    @staticmethod
    def require_instance(instance_id: str) -> None:
        if not instance_id:
            raise GatewayError("instance id is required", code=ErrorCode.EMPTY_INSTANCE_ID)


@dataclass
class MetadBackedService(BaseService):
    connector: MetadConnector

    @contextmanager
    def session(self, instance_id: str) -> Iterator[object]:
        """Open a metad client for the instance.

        Collaborator failures that escape the block become ``InternalError``;
        ``GatewayError`` raised inside the block passes through unchanged.
        """
        self.require_instance(instance_id)
        try:
            with self.connector.connect(instance_id) as client:
                yield client
        except (ClusterError, MetadError) as exc:
            logger.error("Request against instance %s failed: %s", instance_id, exc)
            raise InternalError(str(exc)) from exc

    @staticmethod
    def resolve_role(client, account: str, space_name: str) -> Role:
        """Role of ``account`` for ``space_name``; a root-space role wins."""
        grants: List[RoleGrant] = client.get_user_roles(account)
        for grant in grants:
            if grant.space_id == ROOT_SPACE_ID:
                return grant.role
        space_id = client.get_space_id(space_name)
        for grant in grants:
            if grant.space_id == space_id:
                return grant.role
        raise RoleNotFound(f"{account} holds no role in {space_name}")
