"""Role parsing and the grant hierarchy."""

from __future__ import annotations

import itertools

import pytest

from metad_gateway.roles import Role


@pytest.mark.parametrize(
    "name, expected",
    [
        ("GOD", Role.GOD),
        ("ADMIN", Role.ADMIN),
        ("DBA", Role.DBA),
        ("USER", Role.USER),
        ("GUEST", Role.GUEST),
        ("admin", Role.GUEST),
        ("", Role.GUEST),
        (None, Role.GUEST),
        ("OWNER", Role.GUEST),
    ],
)
def test_parse_falls_back_to_guest(name, expected):
    assert Role.parse(name) is expected


def test_lower_value_is_more_privileged():
    assert Role.GOD < Role.ADMIN < Role.DBA < Role.USER < Role.GUEST
    assert Role.ADMIN.label == "ADMIN"


@pytest.mark.parametrize(
    "operator, target, allowed",
    [
        (Role.GOD, Role.GOD, True),
        (Role.GOD, Role.GUEST, True),
        (Role.ADMIN, Role.GOD, False),
        (Role.ADMIN, Role.ADMIN, True),
        (Role.DBA, Role.USER, True),
        (Role.USER, Role.DBA, False),
        (Role.GUEST, Role.GUEST, True),
    ],
)
def test_can_manage_roles_at_or_below_own_level(operator, target, allowed):
    assert operator.can_manage(target) is allowed


PRIVILEGE_ORDER = [Role.GOD, Role.ADMIN, Role.DBA, Role.USER, Role.GUEST]


@pytest.mark.parametrize("operator, target", list(itertools.product(Role, Role)))
def test_can_manage_every_pair(operator, target):
    expected = PRIVILEGE_ORDER.index(operator) <= PRIVILEGE_ORDER.index(target)
    assert operator.can_manage(target) is expected
