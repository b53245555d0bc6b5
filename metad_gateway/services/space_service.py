"""Graph space listing and creation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..errors import ErrorCode, GatewayError, MetadAlreadyExists
from ..roles import ROOT_SPACE_ID
from .base import MetadBackedService

logger = logging.getLogger(__name__)


@dataclass
class SpaceService(MetadBackedService):
    def list_spaces(self, instance_id: str, user_name: Optional[str] = None) -> List[str]:
        """Space names of the instance, optionally only those visible to ``user_name``."""
        with self.session(instance_id) as client:
            spaces = client.list_spaces()
            if not user_name:
                return [space.name for space in spaces]
            grants = client.get_user_roles(user_name)

        granted = {grant.space_id for grant in grants}
        if ROOT_SPACE_ID in granted:
            return [space.name for space in spaces]
        return [space.name for space in spaces if space.space_id in granted]

    def create_space(self, instance_id: str, space_name: str) -> None:
        self.require_instance(instance_id)
        if not space_name:
            raise GatewayError("space name is required", code=ErrorCode.EMPTY_SPACE_NAME)

        metad = self.config.metad
        with self.session(instance_id) as client:
            try:
                client.create_space(
                    space_name,
                    partition_num=metad.partition_num,
                    replica_factor=metad.replica_factor,
                    if_not_exists=True,
                )
            except MetadAlreadyExists:
                logger.info("Space %s already exists in %s", space_name, instance_id)
                return
        logger.info("Created space %s in %s", space_name, instance_id)
