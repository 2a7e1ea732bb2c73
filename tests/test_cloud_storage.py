import pytest
from cloudinary.exceptions import AuthorizationRequired, Error as CloudinaryError

from cloud_uploader.config import Settings
from cloud_uploader.services.cloud_storage import CloudStorage, StorageError


def _settings(**overrides):
    values = {
        "cloudinary_cloud_name": "demo",
        "cloudinary_api_key": "123",
        "cloudinary_api_secret": "shh",
        "cloudinary_folder": "mern-uploads",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def captured(monkeypatch):
    calls = []

    def _fake_upload(file, **options):
        calls.append({"body": file.read(), "name": getattr(file, "name", None), **options})
        return {
            "secure_url": "https://res.cloudinary.com/demo/image/upload/v1/mern-uploads/abc.png",
            "public_id": "mern-uploads/abc",
        }

    monkeypatch.setattr("cloudinary.uploader.upload", _fake_upload)
    return calls


def test_upload_stream_passes_folder_and_credentials(captured):
    storage = CloudStorage(_settings())
    stored = storage.upload_stream(b"image-bytes", filename="abc.png")

    assert stored.url == "https://res.cloudinary.com/demo/image/upload/v1/mern-uploads/abc.png"
    assert stored.public_id == "mern-uploads/abc"
    assert len(captured) == 1
    call = captured[0]
    assert call["body"] == b"image-bytes"
    assert call["name"] == "abc.png"
    assert call["resource_type"] == "auto"
    assert call["folder"] == "mern-uploads"
    assert call["cloud_name"] == "demo"
    assert call["api_key"] == "123"
    assert call["api_secret"] == "shh"


def test_upload_stream_folder_override(captured):
    CloudStorage(_settings()).upload_stream(b"x", folder="avatars")
    assert captured[0]["folder"] == "avatars"


def test_provider_error_is_wrapped(monkeypatch):
    def _fail(file, **options):
        raise CloudinaryError("Invalid Signature")

    monkeypatch.setattr("cloudinary.uploader.upload", _fail)
    with pytest.raises(StorageError, match="Cloudinary error: Invalid Signature"):
        CloudStorage(_settings()).upload_stream(b"x")


def test_stream_error_is_wrapped(monkeypatch):
    def _fail(file, **options):
        raise ConnectionResetError("connection reset by peer")

    monkeypatch.setattr("cloudinary.uploader.upload", _fail)
    with pytest.raises(StorageError, match="Stream error: connection reset by peer"):
        CloudStorage(_settings()).upload_stream(b"x")


def test_upload_is_attempted_once(monkeypatch):
    attempts = []

    def _fail(file, **options):
        attempts.append(1)
        raise CloudinaryError("Server error")

    monkeypatch.setattr("cloudinary.uploader.upload", _fail)
    with pytest.raises(StorageError):
        CloudStorage(_settings()).upload_stream(b"x")
    assert len(attempts) == 1


def test_response_without_secure_url_is_a_failure(monkeypatch):
    monkeypatch.setattr("cloudinary.uploader.upload", lambda file, **options: {"public_id": "x"})
    with pytest.raises(StorageError, match="secure_url"):
        CloudStorage(_settings()).upload_stream(b"x")


def test_ping_uses_credentials(monkeypatch):
    seen = {}

    def _fake_ping(**options):
        seen.update(options)
        return {"status": "ok"}

    monkeypatch.setattr("cloudinary.api.ping", _fake_ping)
    assert CloudStorage(_settings()).ping() == {"status": "ok"}
    assert seen == {"cloud_name": "demo", "api_key": "123", "api_secret": "shh"}


def test_ping_failure_raises_storage_error(monkeypatch):
    def _fake_ping(**options):
        raise AuthorizationRequired("Invalid api_key 123")

    monkeypatch.setattr("cloudinary.api.ping", _fake_ping)
    with pytest.raises(StorageError, match="Invalid api_key"):
        CloudStorage(_settings()).ping()


def test_ping_without_cloud_name_raises_storage_error(monkeypatch):
    def _fake_ping(**options):
        raise Exception("Must supply cloud_name")

    monkeypatch.setattr("cloudinary.api.ping", _fake_ping)
    with pytest.raises(StorageError, match="Must supply cloud_name"):
        CloudStorage(_settings(cloudinary_cloud_name="")).ping()


def test_upload_without_cloud_name_raises_storage_error(monkeypatch):
    def _fail(file, **options):
        raise Exception("Must supply cloud_name")

    monkeypatch.setattr("cloudinary.uploader.upload", _fail)
    with pytest.raises(StorageError, match="Cloudinary error: Must supply cloud_name"):
        CloudStorage(_settings(cloudinary_cloud_name="")).upload_stream(b"x")


def test_configured_reflects_credentials():
    assert CloudStorage(_settings()).configured is True
    assert CloudStorage(_settings(cloudinary_api_secret="")).configured is False
