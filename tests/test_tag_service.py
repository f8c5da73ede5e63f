from types import SimpleNamespace

from memos_core.services import memo_service, tag_service


def test_count_tags_orders_by_count_then_name():
    memos = [
        SimpleNamespace(payload={"tags": ["b", "a"]}),
        SimpleNamespace(payload={"tags": ["b"]}),
        SimpleNamespace(payload={"tags": ["c"]}),
        SimpleNamespace(payload={}),
        SimpleNamespace(payload=None),
    ]
    assert tag_service.count_tags(memos) == [
        {"tag": "b", "count": 2},
        {"tag": "a", "count": 1},
        {"tag": "c", "count": 1},
    ]


def test_list_tags_respects_visibility(server_db, alice, anonymous):
    memo_service.create_memo(content="#a #b", visibility="PUBLIC", context=alice)
    memo_service.create_memo(content="#a", visibility="PUBLIC", context=alice)
    memo_service.create_memo(content="#c", context=alice)
    archived = memo_service.create_memo(content="#gone", visibility="PUBLIC", context=alice)
    memo_service.update_memo(name=archived["name"], state="ARCHIVED", context=alice)

    assert tag_service.list_tags(context=anonymous) == {
        "tags": [{"tag": "a", "count": 2}, {"tag": "b", "count": 1}],
    }
    assert tag_service.list_tags(context=alice) == {
        "tags": [
            {"tag": "a", "count": 2},
            {"tag": "b", "count": 1},
            {"tag": "c", "count": 1},
        ],
    }


def test_list_tags_ignores_comments(server_db, alice):
    parent = memo_service.create_memo(content="#topic", visibility="PUBLIC", context=alice)
    memo_service.create_memo_comment(name=parent["name"], content="#reply", context=alice)

    assert tag_service.list_tags(context=alice) == {"tags": [{"tag": "topic", "count": 1}]}


def test_list_tags_empty(server_db, anonymous):
    assert tag_service.list_tags(context=anonymous) == {"tags": []}
