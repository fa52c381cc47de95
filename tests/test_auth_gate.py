import pytest

from clipbin.core.errors import (
    GENERIC_AUTH_MESSAGE,
    SessionNotFound,
    TokenInvalid,
    TokenMalformed,
    TokenMissing,
)
from clipbin.core.timezone_utils import add_seconds
from clipbin.repositories.sessions import SessionRepository
from clipbin.repositories.users import UserRepository
from clipbin.services.auth_gate import authenticate, extract_bearer_token
from clipbin.services.tokens import TokenCodec

from conftest import START


def test_extract_bearer_token_accepts_exact_form():
    assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"


def test_extract_bearer_token_missing_header():
    with pytest.raises(TokenMissing):
        extract_bearer_token(None)


@pytest.mark.parametrize(
    "header",
    ["", "Bearer", "Bearer ", "bearer abc", "BEARER abc", "Bearer  abc", "Token abc", "Bearer abc def", "Basic dXNlcjpwdw=="],
)
def test_extract_bearer_token_rejects_other_forms(header):
    with pytest.raises(TokenMalformed):
        extract_bearer_token(header)


def test_rejections_share_one_message():
    messages = {str(TokenMissing("a")), str(TokenMalformed("b")), str(TokenInvalid("c")), str(SessionNotFound("d"))}
    assert messages == {GENERIC_AUTH_MESSAGE}


def _login_row(db, codec, ttl=3600):
    user = UserRepository(db).create_user("bob", "bob@x.com", "hunter22")
    access = codec.issue(user.id, START, ttl)
    refresh = codec.issue(user.id, START, ttl * 10)
    ses = SessionRepository(db).create_session(
        user.id, access, refresh, add_seconds(START, ttl), add_seconds(START, ttl * 10)
    )
    return user, ses, access, refresh


def test_authenticate_resolves_user(db, codec):
    user, ses, access, _ = _login_row(db, codec)
    ctx = authenticate(SessionRepository(db), codec, access, START)
    assert ctx.user_id == user.id
    assert ctx.session_id == ses.id
    assert ctx.token == access


def test_authenticate_rejects_unknown_token(db, codec):
    _login_row(db, codec)
    stranger = codec.issue(1, START, 3600)
    with pytest.raises(SessionNotFound):
        authenticate(SessionRepository(db), codec, stranger, START)


def test_authenticate_rejects_expired_session(db, codec):
    _, _, access, _ = _login_row(db, codec, ttl=60)
    with pytest.raises(SessionNotFound):
        authenticate(SessionRepository(db), codec, access, add_seconds(START, 60))


def test_authenticate_rejects_refresh_token_as_access(db, codec):
    _, _, _, refresh = _login_row(db, codec)
    with pytest.raises(SessionNotFound):
        authenticate(SessionRepository(db), codec, refresh, START)


def test_authenticate_rejects_forged_token_with_matching_row(db, codec):
    user = UserRepository(db).create_user("mallory", "m@x.com", "pw")
    forged = TokenCodec("attacker-secret").issue(user.id, START, 3600)
    SessionRepository(db).create_session(
        user.id, forged, "unused-refresh", add_seconds(START, 3600), add_seconds(START, 7200)
    )
    with pytest.raises(TokenInvalid):
        authenticate(SessionRepository(db), codec, forged, START)


def test_authenticate_rejects_subject_mismatch(db, codec):
    user = UserRepository(db).create_user("carol", "c@x.com", "pw")
    token_for_someone_else = codec.issue(user.id + 100, START, 3600)
    SessionRepository(db).create_session(
        user.id, token_for_someone_else, "r", add_seconds(START, 3600), add_seconds(START, 7200)
    )
    with pytest.raises(TokenInvalid):
        authenticate(SessionRepository(db), codec, token_for_someone_else, START)
