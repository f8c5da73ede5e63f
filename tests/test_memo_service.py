from memos_core.models import Memo
from memos_core.services import memo_service


def _create(context, content, visibility=None):
    result = memo_service.create_memo(content=content, visibility=visibility, context=context)
    assert result.get("status") != "error", result
    return result


def test_create_then_get(server_db, alice):
    created = _create(alice, "Buy milk #groceries")
    assert created["name"].startswith("memos/")
    assert created["creator"] == "users/1"
    assert created["visibility"] == "PRIVATE"
    assert created["tags"] == ["groceries"]
    assert created["pinned"] is False
    assert created["state"] == "NORMAL"
    assert "parent" not in created
    assert "property" not in created

    fetched = memo_service.get_memo(name=created["name"], context=alice)
    assert fetched == created


def test_create_requires_authentication(server_db, anonymous):
    result = memo_service.create_memo(content="hello", context=anonymous)
    assert result["status"] == "error"
    assert result["error_type"] == "unauthenticated"


def test_create_validates_arguments(server_db, alice):
    result = memo_service.create_memo(content="", context=alice)
    assert result["error_type"] == "validation"
    assert result["field"] == "content"

    result = memo_service.create_memo(content="hi", visibility="SECRET", context=alice)
    assert result["error_type"] == "validation"
    assert result["field"] == "visibility"


def test_get_memo_enforces_visibility(server_db, alice, bob, anonymous):
    private = _create(alice, "mine")
    protected = _create(alice, "shared", "PROTECTED")

    assert memo_service.get_memo(name=private["name"], context=bob)["error_type"] == "access_denied"
    assert memo_service.get_memo(name=protected["name"], context=bob)["name"] == protected["name"]
    assert memo_service.get_memo(name=protected["name"], context=anonymous)["error_type"] == "access_denied"


def test_get_memo_errors(server_db, alice):
    result = memo_service.get_memo(name="abc", context=alice)
    assert result["error_type"] == "validation"
    assert result["field"] == "name"

    assert memo_service.get_memo(name="memos/", context=alice)["error_type"] == "validation"
    assert memo_service.get_memo(name="memos/missing", context=alice)["error_type"] == "not_found"


def test_unknown_visibility_is_readable(server_db, db_session, anonymous):
    db_session.add(Memo(uid="odd", creator_id=9, content="legacy", visibility="WORKSPACE"))
    db_session.commit()

    result = memo_service.get_memo(name="memos/odd", context=anonymous)
    assert result["visibility"] == "WORKSPACE"


def test_list_memos_anonymous_sees_public_only(server_db, alice, anonymous):
    _create(alice, "private")
    _create(alice, "protected", "PROTECTED")
    public = _create(alice, "public", "PUBLIC")
    archived = _create(alice, "archived", "PUBLIC")
    memo_service.update_memo(name=archived["name"], state="ARCHIVED", context=alice)

    result = memo_service.list_memos(context=anonymous)
    assert [memo["name"] for memo in result["memos"]] == [public["name"]]
    assert result["has_more"] is False


def test_list_memos_authenticated_scope(server_db, alice, bob):
    mine = _create(alice, "private")
    shared = _create(alice, "protected", "PROTECTED")
    _create(bob, "bob private")

    names = {memo["name"] for memo in memo_service.list_memos(context=alice)["memos"]}
    assert mine["name"] in names
    assert shared["name"] in names
    assert len(names) == 2

    names = {memo["name"] for memo in memo_service.list_memos(context=bob)["memos"]}
    assert shared["name"] in names
    assert mine["name"] not in names


def test_list_memos_pagination(server_db, alice, anonymous):
    created = [_create(alice, f"note {i}", "PUBLIC") for i in range(3)]
    newest_first = [memo["name"] for memo in reversed(created)]

    first = memo_service.list_memos(page_size=2, context=anonymous)
    assert [memo["name"] for memo in first["memos"]] == newest_first[:2]
    assert first["has_more"] is True

    second = memo_service.list_memos(page_size=2, page=1, context=anonymous)
    assert [memo["name"] for memo in second["memos"]] == newest_first[2:]
    assert second["has_more"] is False


def test_list_memos_state_pinned_and_filter(server_db, alice):
    work = _create(alice, "standup #work")
    home = _create(alice, "laundry #home")
    archived = _create(alice, "old #work")
    memo_service.update_memo(name=archived["name"], state="ARCHIVED", context=alice)
    memo_service.update_memo(name=work["name"], pinned=True, context=alice)

    result = memo_service.list_memos(order_by_pinned=True, context=alice)
    assert [memo["name"] for memo in result["memos"]] == [work["name"], home["name"]]

    result = memo_service.list_memos(state="ARCHIVED", context=alice)
    assert [memo["name"] for memo in result["memos"]] == [archived["name"]]

    result = memo_service.list_memos(filter_expr='tags.exists(t, t == "work")', context=alice)
    assert [memo["name"] for memo in result["memos"]] == [work["name"]]


def test_list_memos_rejects_bad_arguments(server_db, alice):
    result = memo_service.list_memos(filter_expr="content ==", context=alice)
    assert result["error_type"] == "validation"
    assert result["field"] == "filter"

    result = memo_service.list_memos(state="DELETED", context=alice)
    assert result["error_type"] == "validation"


def test_caller_filter_cannot_widen_visibility(server_db, alice, bob):
    secret = _create(alice, "secret")
    result = memo_service.list_memos(filter_expr="true || creator_id == 1", context=bob)
    assert secret["name"] not in {memo["name"] for memo in result["memos"]}


def test_update_memo_partial(server_db, alice):
    created = _create(alice, "first #a")

    updated = memo_service.update_memo(
        name=created["name"], content="second #b", visibility="PUBLIC", context=alice
    )
    assert updated["content"] == "second #b"
    assert updated["tags"] == ["b"]
    assert updated["visibility"] == "PUBLIC"
    assert updated["pinned"] is False

    pinned = memo_service.update_memo(name=created["name"], pinned=True, context=alice)
    assert pinned["pinned"] is True
    assert pinned["content"] == "second #b"

    unpinned = memo_service.update_memo(name=created["name"], pinned=False, context=alice)
    assert unpinned["pinned"] is False

    untagged = memo_service.update_memo(name=created["name"], content="no tags", context=alice)
    assert untagged["tags"] == []


def test_update_memo_empty_strings_mean_unchanged(server_db, alice):
    created = _create(alice, "keep me")

    result = memo_service.update_memo(
        name=created["name"], content="", visibility="", state="", context=alice
    )
    assert result == created

    result = memo_service.update_memo(name=created["name"], context=alice)
    assert result == created


def test_update_memo_requires_owner(server_db, alice, bob, anonymous):
    created = _create(alice, "public note", "PUBLIC")

    result = memo_service.update_memo(name=created["name"], content="hijack", context=bob)
    assert result["error_type"] == "access_denied"

    result = memo_service.update_memo(name=created["name"], content="hijack", context=anonymous)
    assert result["error_type"] == "unauthenticated"

    result = memo_service.update_memo(name="memos/missing", content="x", context=alice)
    assert result["error_type"] == "not_found"

    assert memo_service.get_memo(name=created["name"], context=alice)["content"] == "public note"


def test_update_memo_rejects_invalid_enums(server_db, alice):
    created = _create(alice, "note")
    result = memo_service.update_memo(name=created["name"], visibility="SECRET", context=alice)
    assert result["error_type"] == "validation"
    result = memo_service.update_memo(name=created["name"], state="GONE", context=alice)
    assert result["error_type"] == "validation"


def test_supplied_update_fields():
    supplied = memo_service.supplied_update_fields(
        {"content": "", "visibility": None, "state": "ARCHIVED", "pinned": False}
    )
    assert supplied == {"state": "ARCHIVED", "pinned": False}


def test_delete_memo(server_db, alice, bob, anonymous):
    created = _create(alice, "to delete")

    assert memo_service.delete_memo(name=created["name"], context=anonymous)["error_type"] == "unauthenticated"
    assert memo_service.delete_memo(name=created["name"], context=bob)["error_type"] == "access_denied"

    result = memo_service.delete_memo(name=created["name"], context=alice)
    assert result == {"deleted": True, "name": created["name"]}
    assert memo_service.get_memo(name=created["name"], context=alice)["error_type"] == "not_found"


def test_search_memos(server_db, alice, bob, anonymous):
    milk = _create(alice, "Buy milk", "PUBLIC")
    _create(alice, "private milk")
    _create(bob, "nothing relevant", "PUBLIC")

    result = memo_service.search_memos(query="milk", context=anonymous)
    assert [memo["name"] for memo in result["memos"]] == [milk["name"]]

    result = memo_service.search_memos(query="milk", context=alice)
    assert len(result["memos"]) == 2

    result = memo_service.search_memos(query="milk", context=bob)
    assert [memo["name"] for memo in result["memos"]] == [milk["name"]]


def test_search_memos_is_literal(server_db, alice):
    percent = _create(alice, "100% sure")
    _create(alice, "quoted \"text\" here")

    result = memo_service.search_memos(query="%", context=alice)
    assert [memo["name"] for memo in result["memos"]] == [percent["name"]]

    result = memo_service.search_memos(query='"text"', context=alice)
    assert len(result["memos"]) == 1


def test_search_memos_requires_query(server_db, alice):
    result = memo_service.search_memos(query="", context=alice)
    assert result["error_type"] == "validation"
    assert result["field"] == "query"


def test_list_memos_reports_hostile_arguments(server_db, alice):
    for filter_expr in ("(" * 600 + "pinned" + ")" * 600, "!" * 2000 + "pinned"):
        result = memo_service.list_memos(filter_expr=filter_expr, context=alice)
        assert result["status"] == "error"
        assert result["error_type"] == "validation"
        assert result["field"] == "filter"

    result = memo_service.list_memos(page=10**19, context=alice)
    assert result["error_type"] == "validation"
    assert result["field"] == "page"
