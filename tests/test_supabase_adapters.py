from types import SimpleNamespace

from backend.app.core.security import create_session_token
from backend.app.core.settings import Settings
from backend.app.services.session_verifier import (
    JwtSessionVerifier,
    SupabaseSessionVerifier,
    build_session_verifier,
)
from backend.app.services.storage import SupabaseObjectStorage
from backend.app.services.supabase_client import build_service_client


class FakeAuth:
    def __init__(self, user=None, error=None):
        self.user = user
        self.error = error
        self.tokens = []

    def get_user(self, token):
        self.tokens.append(token)
        if self.error:
            raise self.error
        return SimpleNamespace(user=self.user)


class FakeBucket:
    def __init__(self):
        self.calls = []

    def upload(self, path, file, file_options):
        self.calls.append(("upload", path, file, file_options))

    def get_public_url(self, path):
        return f"https://project.supabase.co/storage/v1/object/public/facturas/{path}"

    def remove(self, paths):
        self.calls.append(("remove", paths))


class FakeStorageApi:
    def __init__(self):
        self.bucket = FakeBucket()
        self.names = []

    def from_(self, name):
        self.names.append(name)
        return self.bucket


def test_jwt_verifier_accepts_valid_token():
    user = JwtSessionVerifier().get_user(create_session_token("user-1", email="a@example.com"))
    assert user.id == "user-1"
    assert user.email == "a@example.com"


def test_jwt_verifier_rejects_bad_token():
    assert JwtSessionVerifier().get_user("garbage") is None


def test_supabase_verifier_returns_user():
    auth = FakeAuth(user=SimpleNamespace(id="abc", email="b@example.com"))
    user = SupabaseSessionVerifier(SimpleNamespace(auth=auth)).get_user("session-token")
    assert user.id == "abc"
    assert auth.tokens == ["session-token"]


def test_supabase_verifier_maps_errors_to_none():
    auth = FakeAuth(error=RuntimeError("invalid JWT"))
    assert SupabaseSessionVerifier(SimpleNamespace(auth=auth)).get_user("x") is None
    assert SupabaseSessionVerifier(SimpleNamespace(auth=FakeAuth(user=None))).get_user("x") is None


def test_supabase_backend_without_config_falls_back_to_jwt(monkeypatch):
    monkeypatch.setenv("AUTH_BACKEND", "supabase")
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    assert isinstance(build_session_verifier(Settings()), JwtSessionVerifier)


def test_service_client_requires_configuration(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
    assert build_service_client(Settings()) is None


def test_object_storage_upserts_into_bucket():
    api = FakeStorageApi()
    storage = SupabaseObjectStorage(SimpleNamespace(storage=api), "facturas")
    storage.upload("owner/a.pdf", b"%PDF", content_type="application/pdf")
    assert api.names == ["facturas"]
    assert api.bucket.calls == [
        ("upload", "owner/a.pdf", b"%PDF", {"content-type": "application/pdf", "upsert": "true"})
    ]
    assert storage.public_url("owner/a.pdf").endswith("/facturas/owner/a.pdf")


def test_object_storage_remove_skips_empty_list():
    api = FakeStorageApi()
    storage = SupabaseObjectStorage(SimpleNamespace(storage=api), "facturas")
    storage.remove([])
    storage.remove(["owner/a.pdf"])
    assert api.bucket.calls == [("remove", ["owner/a.pdf"])]
