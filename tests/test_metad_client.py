"""Response-code mapping of the Thrift metad client."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

pytest.importorskip("nebula3")

from nebula3.common.ttypes import ErrorCode  # noqa: E402
from nebula3.fbthrift.transport.TTransport import TTransportException  # noqa: E402

from metad_gateway.clients.metad import ThriftMetadClient  # noqa: E402
from metad_gateway.errors import (  # noqa: E402
    MetadAlreadyExists,
    MetadError,
    MetadSpaceNotFound,
    MetadUnavailable,
)
from metad_gateway.roles import Role  # noqa: E402


class _Transport:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class _Connection:
    """Answers every RPC with the queued response for its method name."""

    def __init__(self, **responses):
        self.responses = responses
        self.requests = {}

    def __getattr__(self, name):
        def call(request):
            self.requests[name] = request
            response = self.responses[name]
            if isinstance(response, Exception):
                raise response
            return response

        return call


def _client(**responses):
    return ThriftMetadClient(_Transport(), _Connection(**responses))


def test_list_users_decodes_accounts():
    client = _client(listUsers=SimpleNamespace(code=ErrorCode.SUCCEEDED, users={b"root": b"", b"alice": b""}))

    assert sorted(client.list_users()) == ["alice", "root"]


def test_get_user_roles_maps_role_types():
    roles = [SimpleNamespace(user_id=b"alice", space_id=3, role_type=2)]
    client = _client(getUserRoles=SimpleNamespace(code=ErrorCode.SUCCEEDED, roles=roles))

    (grant,) = client.get_user_roles("alice")

    assert (grant.account, grant.space_id, grant.role) == ("alice", 3, Role.ADMIN)
    assert client._connection.requests["getUserRoles"].account == b"alice"


@pytest.mark.parametrize(
    "code, error",
    [
        (ErrorCode.E_EXISTED, MetadAlreadyExists),
        (ErrorCode.E_SPACE_NOT_FOUND, MetadSpaceNotFound),
        (ErrorCode.E_BAD_PERMISSION, MetadError),
    ],
)
def test_failure_codes_raise(code, error):
    client = _client(createUser=SimpleNamespace(code=code))

    with pytest.raises(error):
        client.create_user("alice")


def test_transport_errors_are_unavailable():
    client = _client(listSpaces=TTransportException(message="timed out"))

    with pytest.raises(MetadUnavailable):
        client.list_spaces()


def test_close_closes_transport():
    client = _client()

    client.close()

    assert client._transport.closed
