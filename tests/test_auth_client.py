from __future__ import annotations

import pytest

from bridge.core.errors import NoIdentityError, RemoteError, ValidationError
from bridge.core.identity import AuthClient
from bridge.core.transport.base import DeliveryMode

from .helpers.fakes import CallbackRecorder, FakeTransport


def test_login_posts_credentials_and_caches(client, transport):
    transport.on("POST", "/user/login", {"id": "u1", "player": True})
    resp = client.login("player", "bob", "pw").result()
    assert resp == {"id": "u1", "player": True}
    call = transport.calls[0]
    assert call.payload == {"username": "bob", "password": "pw", "role": "player"}
    assert client.cache.get() == {"id": "u1", "player": True}


def test_login_error_is_passed_through_and_not_cached(client, transport):
    transport.on("POST", "/user/login", {"error": "bad_credentials", "attempts": 2})
    cb = CallbackRecorder()
    fut = client.login("player", "bob", "nope", callback=cb)
    with pytest.raises(RemoteError) as ei:
        fut.result()
    assert ei.value.code == "bad_credentials"
    assert ei.value.payload == {"error": "bad_credentials", "attempts": 2}
    assert cb.calls == [(ei.value, None)]
    assert client.cache.exists is False


def test_login_by_hash_omits_username_when_absent(client, transport):
    transport.on("POST", "/user/login-by-hash", {"id": "u2"})
    client.login_by_hash("player", "a@b.test", "h1").result()
    client.login_by_hash("player", "a@b.test", "h1", "alice").result()
    assert transport.calls[0].payload == {"email": "a@b.test", "hash": "h1", "role": "player"}
    assert transport.calls[1].payload == {"email": "a@b.test", "hash": "h1", "role": "player", "username": "alice"}
    assert client.cache.get() == {"id": "u2"}


def test_invalid_credentials_reported_through_future(client, transport):
    cb = CallbackRecorder()
    fut = client.login("player", None, "pw", callback=cb)  # type: ignore[arg-type]
    with pytest.raises(ValidationError):
        fut.result()
    assert transport.calls == []
    assert len(cb.calls) == 1


def test_username_available_returns_flag(client, transport):
    transport.on("POST", "/user/username-available", {"available": True}, {"available": False})
    assert client.username_available("bob").result() is True
    assert client.username_available("bob").result() is False
    assert transport.calls[0].payload == {"username": "bob"}


def test_logout_uses_oneshot_mode_and_clears_cache(client, transport):
    transport.on("POST", "/user/login", {"id": "u1"})
    transport.on("GET", "/user/logout", {"ok": True})
    client.login("player", "bob", "pw").result()
    assert client.logout().result() == {"ok": True}
    assert transport.calls[-1].mode is DeliveryMode.ONESHOT
    assert client.cache.exists is False


def test_logout_keeps_cache_when_configured(transport):
    c = AuthClient(transport=transport, clear_on_logout=False)
    transport.on("POST", "/user/login", {"id": "u1"})
    transport.on("GET", "/user/logout", {"ok": True})
    c.login("player", "bob", "pw").result()
    c.logout().result()
    assert c.cache.get() == {"id": "u1"}


def test_get_username(client, transport):
    transport.on("GET", "/user/username/42", {"username": "bob"})
    assert client.get_username(42).result() == "bob"


def test_get_identity_fetches_then_serves_from_cache(client, transport):
    transport.on("GET", "/user/identity", {"id": "u1"})
    first = client.get_identity().result()
    second = client.get_identity().result()
    assert first is second is client.cache.get()
    assert transport.paths() == ["/user/identity"]


def test_cache_hit_for_held_role_skips_network(client, transport):
    client.cache.update({"id": "u1", "admin": True})
    ident = client.get_identity("admin").result()
    assert ident["admin"] is True
    assert transport.calls == []


def test_role_missing_from_cache_fetches_role_path(client, transport):
    client.cache.update({"id": "u1", "profile": {"x": 1}})
    transport.on("GET", "/user/identity/admin", {"admin": True, "profile": {"y": 2}})
    ident = client.get_identity("admin").result()
    assert transport.paths() == ["/user/identity/admin"]
    assert ident == {"id": "u1", "admin": True, "profile": {"x": 1, "y": 2}}


def test_force_bypasses_cache(client, transport):
    client.cache.update({"id": "u1", "credits": 1})
    transport.on("GET", "/user/identity", {"credits": 7})
    ident = client.get_identity(force=True).result()
    assert ident == {"id": "u1", "credits": 7}
    assert len(transport.calls) == 1


def test_get_identity_returns_shared_cache_not_raw_response(client, transport):
    client.cache.update({"id": "u1", "extra": "kept"})
    transport.on("GET", "/user/identity", {"credits": 3})
    ident = client.get_identity(force=True).result()
    assert ident is client.cache.get()
    assert ident["extra"] == "kept"


def test_has_identity_true_false(client, transport):
    transport.on("GET", "/user/identity/admin", {"id": "u1", "admin": False})
    assert client.has_identity("admin").result() is False
    client.cache.update({"admin": True})
    assert client.has_identity("admin").result() is True


def test_has_identity_translates_no_identity(client, transport):
    transport.on("GET", "/user/identity/admin", {"error": "no_identity"})
    cb = CallbackRecorder()
    assert client.has_identity("admin", callback=cb).result() is False
    assert cb.calls == [(None, False)]


def test_has_identity_propagates_other_errors(client, transport):
    transport.on("GET", "/user/identity/admin", {"error": "server_down"})
    with pytest.raises(RemoteError) as ei:
        client.has_identity("admin").result()
    assert not isinstance(ei.value, NoIdentityError)


def test_no_identity_propagates_elsewhere(client, transport):
    transport.on("GET", "/user/identity", {"error": "no_identity"})
    with pytest.raises(NoIdentityError):
        client.get_user_id().result()


def test_get_user_id(client, transport):
    transport.on("GET", "/user/identity", {"id": "u9"})
    assert client.get_user_id().result() == "u9"


def test_update_resolves_identity_then_puts(client, transport):
    transport.on("GET", "/user/identity", {"id": "u1", "name": "old", "credits": 2})
    transport.on("PUT", "/user/u1", {"name": "new"})
    resp = client.update({"name": "new"}).result()
    assert resp == {"name": "new"}
    assert transport.paths() == ["/user/identity", "/user/u1"]
    assert transport.calls[1].payload == {"name": "new"}
    assert client.cache.get() == {"id": "u1", "name": "new", "credits": 2}


def test_update_stops_when_identity_fails(client, transport):
    transport.on("GET", "/user/identity", {"error": "no_identity"})
    with pytest.raises(NoIdentityError):
        client.update({"name": "x"}).result()
    assert transport.paths() == ["/user/identity"]


def test_update_error_response_not_cached(client, transport):
    client.cache.update({"id": "u1", "name": "old"})
    transport.on("PUT", "/user/u1", {"error": "invalid_name", "name": "bad"})
    with pytest.raises(RemoteError):
        client.update({"name": "bad"}).result()
    assert client.cache.get() == {"id": "u1", "name": "old"}


def test_verify_with_explicit_id_and_identity_object(client, transport):
    transport.on("GET", "/user/7/verify/email", {"verified": True})
    transport.on("GET", "/user/8/verify/notificationEmail", {"verified": True})
    assert client.verify("email", "h", 7).result() == {"verified": True}
    assert client.verify_notification_email("h2", {"id": 8, "name": "x"}).result() == {"verified": True}
    assert transport.calls[0].params == {"hash": "h"}
    assert transport.calls[1].params == {"hash": "h2"}
    assert transport.calls[1].path == "/user/8/verify/notificationEmail"


def test_verify_without_user_resolves_identity_and_keeps_callback(client, transport):
    transport.on("GET", "/user/identity", {"id": "u5"})
    transport.on("GET", "/user/u5/verify/email", {"verified": True})
    cb = CallbackRecorder()
    result = client.verify_email("hash-1", callback=cb).result()
    assert result == {"verified": True}
    assert transport.paths() == ["/user/identity", "/user/u5/verify/email"]
    assert transport.calls[1].params == {"hash": "hash-1"}
    assert cb.calls == [(None, {"verified": True})]


def test_verify_rejects_unknown_type(client, transport):
    with pytest.raises(ValidationError):
        client.verify("phone", "h", 1).result()
    assert transport.calls == []


def test_callback_invoked_exactly_once_for_deferred_transport():
    t = FakeTransport(deferred=True).on("GET", "/user/identity", {"id": "u1"})
    c = AuthClient(transport=t)
    cb = CallbackRecorder()
    fut = c.get_user_id(callback=cb)
    assert fut.done() is False
    assert cb.calls == []
    t.flush()
    assert fut.result() == "u1"
    assert cb.calls == [(None, "u1")]


def test_interleaved_fetches_merge_last_completion_wins():
    t = FakeTransport(deferred=True).on("GET", "/user/identity", {"credits": 1, "a": 1}, {"credits": 2, "b": 2})
    c = AuthClient(transport=t)
    f1 = c.get_identity(force=True)
    f2 = c.get_identity(force=True)
    t.flush()
    assert f1.result() is f2.result()
    assert c.cache.get() == {"credits": 2, "a": 1, "b": 2}


def test_reset_forces_refetch(client, transport):
    transport.on("GET", "/user/identity", {"id": "u1"})
    client.get_identity().result()
    client.reset()
    client.get_identity().result()
    assert transport.paths() == ["/user/identity", "/user/identity"]
