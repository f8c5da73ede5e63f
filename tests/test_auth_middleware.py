from datetime import timedelta

from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from memos_core.auth import hash_token, issue_access_token, verify_access_token
from memos_core.mcp.auth_middleware import MCPAuthMiddleware, get_current_context
from memos_core.models import AccessToken


def _client(require_auth=False):
    async def whoami(request):
        ctx = get_current_context()
        return JSONResponse({"user_id": ctx.auth.user_id, "actor": ctx.auth.actor})

    app = Starlette(routes=[Route("/whoami", whoami, methods=["GET"])])
    return TestClient(MCPAuthMiddleware(app, require_auth=require_auth))


def test_missing_header_runs_anonymous(server_db):
    response = _client().get("/whoami")
    assert response.status_code == 200
    assert response.json() == {"user_id": None, "actor": "anonymous"}


def test_missing_header_rejected_when_required(server_db):
    response = _client(require_auth=True).get("/whoami")
    assert response.status_code == 401


def test_valid_token_binds_user(server_db, db_session):
    raw = issue_access_token(db_session, 7, description="laptop")
    assert raw.startswith("memos_pat_")

    response = _client().get("/whoami", headers={"Authorization": f"Bearer {raw}"})
    assert response.status_code == 200
    assert response.json() == {"user_id": 7, "actor": "users/7"}


def test_invalid_token_rejected(server_db):
    response = _client().get("/whoami", headers={"Authorization": "Bearer memos_pat_nope"})
    assert response.status_code == 401
    assert response.json() == {"message": "invalid or expired token"}


def test_expired_and_revoked_tokens_rejected(server_db, db_session):
    expired = issue_access_token(db_session, 7, expires_in=timedelta(seconds=-1))
    revoked = issue_access_token(db_session, 8)
    row = db_session.query(AccessToken).filter(AccessToken.token_hash == hash_token(revoked)).one()
    row.revoked = True
    db_session.commit()

    assert verify_access_token(db_session, expired) is None
    assert verify_access_token(db_session, revoked) is None

    client = _client()
    for raw in (expired, revoked):
        response = client.get("/whoami", headers={"Authorization": f"Bearer {raw}"})
        assert response.status_code == 401


def test_tokens_stored_hashed(server_db, db_session):
    raw = issue_access_token(db_session, 3)
    row = db_session.query(AccessToken).one()
    assert row.token_hash == hash_token(raw)
    assert raw not in row.token_hash
