import asyncio

import httpx
import pytest

from halo.client import API_UNAVAILABLE, ApiClient, AuthContext, LocalStorage
from halo.client.auth_context import EMAIL_STORAGE_KEY, TOKEN_STORAGE_KEY
from halo.client.device import get_device_fingerprint


def unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


class TestLocalStorage:
    def test_values_survive_a_restart(self, tmp_path):
        path = tmp_path / "storage.json"
        LocalStorage(path).set_item("halo_session_token", "abc")

        restarted = LocalStorage(path)
        assert restarted.get_item("halo_session_token") == "abc"
        assert "halo_session_token" in restarted

    def test_remove_item(self, tmp_path):
        storage = LocalStorage(tmp_path / "storage.json")
        storage.set_item("key", {"nested": [1, 2]})
        storage.remove_item("key")
        storage.remove_item("never-set")
        assert storage.get_item("key") is None
        assert LocalStorage(tmp_path / "storage.json").get_item("key", "default") == "default"

    def test_memory_only(self):
        storage = LocalStorage()
        storage.set_item("key", 1)
        assert storage.get_item("key") == 1


def test_device_fingerprint_is_stable(tmp_path):
    storage = LocalStorage(tmp_path / "storage.json")
    fingerprint = get_device_fingerprint(storage)
    assert fingerprint == get_device_fingerprint(LocalStorage(tmp_path / "storage.json"))
    assert fingerprint != get_device_fingerprint(LocalStorage())


class TestAuthContext:
    def test_starts_loading_until_restored(self):
        auth = AuthContext(LocalStorage())
        assert auth.loading is True
        auth.restore()
        assert auth.loading is False
        assert auth.is_authenticated is False

    def test_login_persists_and_restores(self, tmp_path):
        path = tmp_path / "storage.json"
        api = ApiClient(base_url="http://halo.test")
        AuthContext(LocalStorage(path), api).login("session_1", "owner@example.com")
        assert api.session_id == "session_1"

        other_api = ApiClient(base_url="http://halo.test")
        restored = AuthContext(LocalStorage(path), other_api)
        restored.restore()
        assert restored.token == "session_1"
        assert restored.email == "owner@example.com"
        assert other_api.session_id == "session_1"

    def test_corrupt_storage_still_finishes_loading(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text("{not json", encoding="utf-8")

        auth = AuthContext(LocalStorage(path))
        auth.restore()
        assert auth.loading is False
        assert auth.is_authenticated is False

    def test_subscribers_follow_the_session(self):
        auth = AuthContext(LocalStorage())
        seen = []
        auth.subscribe(seen.append)
        auth.login("session_1", "owner@example.com")
        auth.logout()
        assert seen == ["session_1", None]

    def test_logout_clears_storage(self, tmp_path):
        storage = LocalStorage(tmp_path / "storage.json")
        auth = AuthContext(storage)
        auth.login("session_1", "owner@example.com")
        auth.logout()

        assert auth.token is None
        assert auth.email is None
        assert TOKEN_STORAGE_KEY not in storage
        assert EMAIL_STORAGE_KEY not in storage

    def test_sign_out_clears_local_state_when_server_unreachable(self):
        async def scenario():
            api = ApiClient(base_url="http://halo.test", transport=httpx.MockTransport(unreachable))
            auth = AuthContext(LocalStorage(), api)
            auth.login("session_1", "owner@example.com")
            await auth.sign_out()
            assert auth.is_authenticated is False
            assert api.session_id is None

        asyncio.run(scenario())

    def test_failed_sign_in_keeps_signed_out(self):
        def handler(request):
            return httpx.Response(401, json={"detail": "Invalid email or password"})

        async def scenario():
            api = ApiClient(base_url="http://halo.test", transport=httpx.MockTransport(handler))
            auth = AuthContext(LocalStorage(), api)
            response = await auth.sign_in_with_email("owner@example.com", "wrong")
            assert response.status_code == 401
            assert auth.is_authenticated is False

        asyncio.run(scenario())


class TestApiClient:
    def test_unreachable_backend_returns_sentinel(self):
        async def scenario():
            async with ApiClient(base_url="http://halo.test", transport=httpx.MockTransport(unreachable)) as api:
                response = await api.load_user_data()
            assert response.error == API_UNAVAILABLE
            assert response.unavailable
            assert not response.ok

        asyncio.run(scenario())

    def test_session_is_sent_as_cookie(self):
        seen = []

        def handler(request):
            seen.append(request.headers.get("cookie"))
            return httpx.Response(
                200, json={"email": "owner@example.com"}, headers={"set-cookie": "sessionId=other; Path=/"}
            )

        async def scenario():
            async with ApiClient(base_url="http://halo.test", transport=httpx.MockTransport(handler)) as api:
                api.set_session("session_1")
                await api.get_current_user()
                await api.get_current_user()
                api.set_session(None)
                await api.get_current_user()

        asyncio.run(scenario())
        # the Set-Cookie from the response never replaces the tracked session
        assert seen == ["sessionId=session_1", "sessionId=session_1", None]

    @pytest.mark.parametrize(
        "status_code, body, expected",
        [
            (401, {"detail": "Session expired"}, "Not authenticated"),
            (400, {"detail": "Email already registered"}, "Email already registered"),
            (500, {"detail": [{"msg": "odd"}]}, "Failed to create account"),
        ],
    )
    def test_error_details(self, status_code, body, expected):
        def handler(request):
            return httpx.Response(status_code, json=body)

        async def scenario():
            async with ApiClient(base_url="http://halo.test", transport=httpx.MockTransport(handler)) as api:
                return await api.signup("owner@example.com", "secret123")

        response = asyncio.run(scenario())
        assert response.error == expected
        assert response.status_code == status_code
