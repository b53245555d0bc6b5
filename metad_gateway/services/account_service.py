"""Account and role administration against an instance's metad."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..errors import (
    GrantRoleFailed,
    InitialUserFailed,
    InternalError,
    InvalidRequest,
    MetadAlreadyExists,
    MetadError,
    MetadSpaceNotFound,
    MetadUnavailable,
    NotFound,
    SpaceNotFound,
    UserExisted,
)
from ..roles import ROOT_SPACE_ID, Role
from .base import MetadBackedService, RoleNotFound

logger = logging.getLogger(__name__)

# Built-in superuser of every instance; hidden from per-space listings.
ROOT_ACCOUNT = "root"


@dataclass
class AccountService(MetadBackedService):
    """User bootstrap, role grants and role listings.

    Operators may only grant or revoke roles at or below their own level
    (see ``Role.can_manage``).
    """

    def list_users(self, instance_id: str) -> List[str]:
        with self.session(instance_id) as client:
            return sorted(client.list_users())

    # GOD bootstrap --------------------------------------------------------

    def initialize(self, instance_id: str, user_name: str) -> None:
        """Create ``user_name`` if needed and grant it GOD on the root space."""
        if not user_name:
            raise InvalidRequest("user name is required")
        with self.session(instance_id) as client:
            self._grant_god(client, user_name)
        logger.info("Initialized GOD user %s in %s", user_name, instance_id)

    def transfer_god(self, instance_id: str, user_name: str, old_name: Optional[str]) -> None:
        """Grant GOD to ``user_name`` and then drop ``old_name``.

        The two steps are not atomic: when the drop fails the new grant is kept
        and both accounts remain GOD.
        """
        if not user_name:
            raise InvalidRequest("user name is required")
        with self.session(instance_id) as client:
            self._grant_god(client, user_name)
            if not old_name or old_name == user_name:
                logger.info("No previous GOD user to drop in %s", instance_id)
                return
            try:
                client.drop_user(old_name)
            except MetadError as exc:
                logger.error(
                    "Dropping previous GOD user %s in %s failed, %s keeps GOD: %s",
                    old_name,
                    instance_id,
                    user_name,
                    exc,
                )
                raise InternalError(str(exc)) from exc
        logger.info("Transferred GOD from %s to %s in %s", old_name, user_name, instance_id)

    @staticmethod
    def _grant_god(client, user_name: str) -> None:
        try:
            client.create_user(user_name)
        except MetadAlreadyExists:
            logger.info("User %s already exists", user_name)
        except MetadUnavailable:
            raise
        except MetadError as exc:
            raise UserExisted(str(exc)) from exc

        try:
            client.grant_role(user_name, ROOT_SPACE_ID, Role.GOD)
        except MetadError as exc:
            logger.error("Granting GOD to %s failed: %s", user_name, exc)
            raise InitialUserFailed(str(exc)) from exc

    # Space roles ----------------------------------------------------------

    def create_user(self, instance_id: str, user_name: str, role_name: str, space_name: str, account: str) -> None:
        """Create ``user_name`` if missing and grant it ``role_name`` on ``space_name``."""
        requested = Role.parse(role_name)
        with self.session(instance_id) as client:
            self._authorize(client, account, space_name, requested)

            try:
                client.create_user(user_name, if_not_exists=True)
            except MetadAlreadyExists:
                logger.info("User %s already exists in %s", user_name, instance_id)

            try:
                space_id = client.get_space_id(space_name)
            except MetadSpaceNotFound as exc:
                raise SpaceNotFound(f"space {space_name} not found") from exc

            client.grant_role(user_name, space_id, requested)
        logger.info("Granted %s on %s to %s in %s", requested.label, space_name, user_name, instance_id)

    def revoke_user(self, instance_id: str, user_name: str, role_name: str, space_name: str, account: str) -> None:
        requested = Role.parse(role_name)
        with self.session(instance_id) as client:
            self._authorize(client, account, space_name, requested)
            space_id = client.get_space_id(space_name)
            client.revoke_role(user_name, space_id, requested)
        logger.info("Revoked %s on %s from %s in %s", requested.label, space_name, user_name, instance_id)

    def _authorize(self, client, account: str, space_name: str, requested: Role) -> Role:
        try:
            operator_role = self.resolve_role(client, account, space_name)
        except (MetadError, RoleNotFound) as exc:
            logger.warning("Cannot resolve role of %s on %s: %s", account, space_name, exc)
            raise GrantRoleFailed(str(exc)) from exc
        if not operator_role.can_manage(requested):
            logger.warning("%s (%s) may not manage role %s", account, operator_role.label, requested.label)
            raise GrantRoleFailed(f"{account} may not manage {requested.label}")
        return operator_role

    # Listings -------------------------------------------------------------

    def list_space_users(self, instance_id: str, space_name: str, operator: str) -> Dict[str, str]:
        """Roles held on ``space_name``, as far as ``operator`` may see them.

        Operators below ADMIN only see themselves; ADMIN operators do not see
        GOD entries.
        """
        with self.session(instance_id) as client:
            try:
                operator_role = self.resolve_role(client, operator, space_name)
            except (MetadError, RoleNotFound) as exc:
                logger.warning("Cannot resolve role of operator %s: %s", operator, exc)
                raise NotFound(str(exc)) from exc

            if operator_role > Role.ADMIN:
                return {operator: operator_role.label}

            accounts = client.list_users()
            try:
                space_id = client.get_space_id(space_name)
            except MetadUnavailable:
                raise
            except MetadError as exc:
                raise NotFound(f"space {space_name} not found") from exc

            user_roles: Dict[str, str] = {}
            for account in accounts:
                if account == ROOT_ACCOUNT:
                    continue
                for grant in self._grants_of(client, account):
                    if grant.space_id != space_id:
                        continue
                    if operator_role == Role.ADMIN and grant.role == Role.GOD:
                        continue
                    user_roles[grant.account] = grant.role.label
            return user_roles

    def list_root_space_users(self, instance_id: str) -> Dict[str, str]:
        with self.session(instance_id) as client:
            user_roles: Dict[str, str] = {}
            for account in client.list_users():
                for grant in self._grants_of(client, account):
                    if grant.space_id == ROOT_SPACE_ID:
                        user_roles[grant.account] = grant.role.label
            return user_roles

    @staticmethod
    def _grants_of(client, account: str):
        try:
            return client.get_user_roles(account)
        except MetadUnavailable:
            raise
        except MetadError as exc:
            logger.warning("Reading roles of %s failed, skipping: %s", account, exc)
            return []
