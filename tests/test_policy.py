from types import SimpleNamespace

import pytest

from memos_core.errors import PermissionDenied
from memos_core.policy import can_read, check_memo_access, list_filter, require_owner


def _memo(visibility, creator_id=1):
    return SimpleNamespace(visibility=visibility, creator_id=creator_id)


@pytest.mark.parametrize(
    "visibility,user_id,expected",
    [
        ("PUBLIC", 0, True),
        ("PUBLIC", 2, True),
        ("PROTECTED", 0, False),
        ("PROTECTED", 2, True),
        ("PRIVATE", 0, False),
        ("PRIVATE", 2, False),
        ("PRIVATE", 1, True),
        ("UNKNOWN", 0, True),
    ],
)
def test_can_read(visibility, user_id, expected):
    assert can_read(_memo(visibility), user_id) is expected


def test_check_memo_access_raises_permission_denied():
    with pytest.raises(PermissionDenied):
        check_memo_access(_memo("PRIVATE"), 2)
    check_memo_access(_memo("PRIVATE"), 1)


def test_require_owner_ignores_visibility():
    with pytest.raises(PermissionDenied):
        require_owner(_memo("PUBLIC"), 2)
    require_owner(_memo("PRIVATE"), 1)


def test_list_filter_anonymous_is_public_only():
    policy = list_filter(0)
    assert policy.visibility_list == ["PUBLIC"]
    assert policy.filters == []


def test_list_filter_authenticated_includes_own_and_shared():
    policy = list_filter(7)
    assert policy.visibility_list is None
    assert policy.filters == ['creator_id == 7 || visibility in ["PUBLIC", "PROTECTED"]']
