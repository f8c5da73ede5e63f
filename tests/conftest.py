import os

os.environ.setdefault("DB_BACKEND", "sqlite")
os.environ.setdefault("REQUIRE_MCP_AUTH", "false")

import pytest

from memos_core.context import ANONYMOUS_CONTEXT, AuthContext, RequestContext
from memos_core.db import DB, bind_engine, build_engine
from memos_core.models import Base


def user_context(user_id: int) -> RequestContext:
    return RequestContext(auth=AuthContext(user_id=user_id, actor=f"users/{user_id}"))


@pytest.fixture
def server_db(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'memos.sqlite'}")
    Base.metadata.create_all(engine)
    previous_engine = DB.engine
    previous_session = DB.SessionLocal
    bind_engine(engine)
    try:
        yield engine
    finally:
        DB.engine = previous_engine
        DB.SessionLocal = previous_session
        engine.dispose()


@pytest.fixture
def db_session(server_db):
    session = DB.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def alice():
    return user_context(1)


@pytest.fixture
def bob():
    return user_context(2)


@pytest.fixture
def anonymous():
    return ANONYMOUS_CONTEXT
