"""Owner-or-admin gate; no database involved."""
import pytest

from app.lorewiki.rbac import Principal, can_mutate


def test_owner_may_mutate():
    assert can_mutate(7, Principal(id=7)) is True


def test_stranger_may_not_mutate():
    assert can_mutate(7, Principal(id=8)) is False


def test_admin_may_mutate_anything():
    assert can_mutate(7, Principal(id=8, is_admin=True)) is True
    assert can_mutate(None, Principal(id=8, is_admin=True)) is True


@pytest.mark.parametrize("owner,principal_id", [(7, "7"), ("7", 7), (" 7", "7 ")])
def test_ids_compare_by_value(owner, principal_id):
    assert can_mutate(owner, Principal(id=principal_id)) is True


def test_no_principal_is_never_allowed():
    assert can_mutate(7, None) is False


def test_missing_owner_only_admin():
    assert can_mutate(None, Principal(id=7)) is False


def test_principal_from_user():
    class _User:
        id = 5
        is_admin = 1
        username = "mira"

    p = Principal.from_user(_User())
    assert p == Principal(id=5, is_admin=True, username="mira")
