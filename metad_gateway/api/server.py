"""FastAPI front end exposing the metad gateway routes."""

from __future__ import annotations

import hmac
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..errors import ErrorCode, GatewayError, InvalidRequest, Unauthorized
from ..models import ClusterCost, ComponentInfo, Disk, InstanceUsage
from ..runtime import GatewayRuntime

logger = logging.getLogger(__name__)

router = APIRouter()


def get_runtime(request: Request) -> GatewayRuntime:
    return request.app.state.runtime


def check_token(request: Request) -> None:
    """Static token check; disabled when no token is configured."""
    expected = request.app.state.runtime.config.auth.token
    if not expected:
        return
    provided = request.headers.get("authorization", "")
    if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Rejected %s %s: bad authorization header", request.method, request.url.path)
        raise Unauthorized("authorization header mismatch")


class _WireModel(BaseModel):
    """Request bodies keep the field names used on the wire."""

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _fold_keys(cls, data: Any) -> Any:
        """Match keys against the aliases case-insensitively; exact keys win."""
        if not isinstance(data, dict):
            return data
        aliases = {field.alias.lower(): field.alias for field in cls.model_fields.values() if field.alias}
        folded: dict[str, Any] = {}
        for key, value in data.items():
            target = aliases.get(key.lower(), key) if isinstance(key, str) else key
            if target in folded and key != target:
                continue
            folded[target] = value
        return folded


class InstanceRequest(_WireModel):
    instance_id: str = Field(default="", alias="InstanceID")


class ListSpaceRequest(InstanceRequest):
    user_name: Optional[str] = Field(default=None, alias="UserName")


class CreateSpaceRequest(InstanceRequest):
    space_name: str = Field(default="", alias="SpaceName")


class CreateUserRequest(InstanceRequest):
    user_name: str = Field(default="", alias="UserName")
    role: str = Field(default="", alias="Role")
    space_name: str = Field(default="", alias="SpaceName")
    account: str = Field(default="", alias="Account")


class TransferGodUserRequest(InstanceRequest):
    user_name: str = Field(default="", alias="UserName")
    old_name: str = Field(default="", alias="OldName")


class RevokeUserRequest(InstanceRequest):
    user_name: str = Field(default="", alias="UserName")
    space: str = Field(default="", alias="Space")
    role: str = Field(default="", alias="Role")
    account: str = Field(default="", alias="Account")


class ListUserRequest(InstanceRequest):
    space_name: str = Field(default="", alias="SpaceName")
    operator: str = Field(default="", alias="Operator")


def body(model: type[_WireModel]):
    """Decode the raw body as JSON whatever the declared content type."""

    async def decode(request: Request):
        raw = await request.body()
        try:
            return model.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Invalid request body for %s: %s", request.url.path, exc.errors())
            raise InvalidRequest("invalid request body") from exc

    return decode


def _ok(**payload: Any) -> dict[str, Any]:
    return {**payload, "Code": int(ErrorCode.SUCCESS)}


# Spaces -------------------------------------------------------------------


@router.post("/list/spaces")
def list_spaces(
    payload: ListSpaceRequest = Depends(body(ListSpaceRequest)),
    runtime: GatewayRuntime = Depends(get_runtime),
):
    spaces = runtime.space_service.list_spaces(payload.instance_id, payload.user_name or None)
    return _ok(InstanceID=payload.instance_id, Spaces=spaces)


@router.post("/create/spaces")
def create_space(
    payload: CreateSpaceRequest = Depends(body(CreateSpaceRequest)),
    runtime: GatewayRuntime = Depends(get_runtime),
):
    runtime.space_service.create_space(payload.instance_id, payload.space_name)
    return _ok()


# Users --------------------------------------------------------------------


@router.post("/list/users")
def list_users(
    payload: InstanceRequest = Depends(body(InstanceRequest)),
    runtime: GatewayRuntime = Depends(get_runtime),
):
    users = runtime.account_service.list_users(payload.instance_id)
    return _ok(InstanceID=payload.instance_id, Users=users)


@router.post("/initialize")
def initialize(
    payload: CreateUserRequest = Depends(body(CreateUserRequest)),
    runtime: GatewayRuntime = Depends(get_runtime),
):
    runtime.account_service.initialize(payload.instance_id, payload.user_name)
    return _ok()


@router.post("/changeGod")
def change_god(
    payload: TransferGodUserRequest = Depends(body(TransferGodUserRequest)),
    runtime: GatewayRuntime = Depends(get_runtime),
):
    runtime.account_service.transfer_god(payload.instance_id, payload.user_name, payload.old_name)
    return _ok()


@router.post("/create/users")
def create_user(
    payload: CreateUserRequest = Depends(body(CreateUserRequest)),
    runtime: GatewayRuntime = Depends(get_runtime),
):
    runtime.account_service.create_user(
        payload.instance_id,
        payload.user_name,
        payload.role,
        payload.space_name,
        payload.account,
    )
    return _ok()


@router.post("/delete/users")
def revoke_user(
    payload: RevokeUserRequest = Depends(body(RevokeUserRequest)),
    runtime: GatewayRuntime = Depends(get_runtime),
):
    runtime.account_service.revoke_user(
        payload.instance_id,
        payload.user_name,
        payload.role,
        payload.space,
        payload.account,
    )
    return _ok()


@router.post("/list/spaces/users")
def list_space_users(
    payload: ListUserRequest = Depends(body(ListUserRequest)),
    runtime: GatewayRuntime = Depends(get_runtime),
):
    roles = runtime.account_service.list_space_users(payload.instance_id, payload.space_name, payload.operator)
    return _ok(UserRoles=roles)


@router.post("/list/rootspaces/users")
def list_root_space_users(
    payload: InstanceRequest = Depends(body(InstanceRequest)),
    runtime: GatewayRuntime = Depends(get_runtime),
):
    roles = runtime.account_service.list_root_space_users(payload.instance_id)
    return _ok(UserRoles=roles)


# Usage --------------------------------------------------------------------


@router.post("/instance/version")
def instance_version(
    payload: InstanceRequest = Depends(body(InstanceRequest)),
    runtime: GatewayRuntime = Depends(get_runtime),
):
    infos = runtime.usage_service.instance_version(payload.instance_id)
    return _ok(data=[_serialize_component(info) for info in infos])


@router.api_route("/clusterCost", methods=["GET", "POST"])
def cluster_cost(runtime: GatewayRuntime = Depends(get_runtime)):
    try:
        cost = runtime.usage_service.cluster_cost()
    except GatewayError as exc:
        # This route reports its code in lower case.
        return JSONResponse({"code": int(exc.code), "clusterCost": {}}, status_code=exc.status_code)
    return {"clusterCost": _serialize_cluster_cost(cost)}


def _omit_empty(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value not in (None, "", 0, [])}


def _serialize_component(info: ComponentInfo) -> dict[str, Any]:
    payload = _omit_empty({"diskUsage": info.disk_usage, "totalDiskSpace": info.total_disk_space})
    payload.update(
        component=info.component,
        version=info.version,
        commitID=info.commit_id,
        buildTime=info.build_time,
    )
    return payload


def _serialize_disk(disk: Disk) -> dict[str, Any]:
    return _omit_empty({"duration": disk.duration, "size": disk.size, "usage": disk.usage})


def _serialize_instance(instance: InstanceUsage) -> dict[str, Any]:
    return _omit_empty(
        {
            "instanceName": instance.instance_name,
            "cpu": instance.cpu,
            "cpuUsage": instance.cpu_usage,
            "memoryUsage": instance.memory_usage,
            "memory": instance.memory,
            "disks": [_serialize_disk(disk) for disk in instance.disks],
        }
    )


def _serialize_cluster_cost(cost: ClusterCost) -> dict[str, Any]:
    return _omit_empty(
        {
            "clusterName": cost.cluster_name,
            "machines": [
                _omit_empty({"duration": m.duration, "cpu": m.cpu, "memory": m.memory}) for m in cost.machines
            ],
            "disks": [_serialize_disk(disk) for disk in cost.disks],
            # Field name kept as the front end reads it.
            "loadBalacer": [_omit_empty({"duration": lb.duration, "band": lb.band}) for lb in cost.load_balancers],
            "instances": [_serialize_instance(instance) for instance in cost.instances],
        }
    )


# Application --------------------------------------------------------------


async def _gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    logger.info("%s %s -> code %s: %s", request.method, request.url.path, int(exc.code), exc)
    return JSONResponse({"Code": int(exc.code)}, status_code=exc.status_code)


def create_app(runtime: GatewayRuntime) -> FastAPI:
    app = FastAPI(title="Metad Gateway", version="0.1.0", dependencies=[Depends(check_token)])
    app.state.runtime = runtime
    app.include_router(router)
    app.add_exception_handler(GatewayError, _gateway_error_handler)
    return app
