import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, ReadTimeoutError

from asset_api.app.storage.errors import StorageBackendError, StorageTimeoutError
from asset_api.app.storage.s3_backend import S3Backend
from conftest import BUCKET, PUBLIC_BASE, DummyS3Client


@pytest.fixture
def backend(s3_client):
    return S3Backend(bucket=BUCKET, public_base_url=PUBLIC_BASE + "/", client=s3_client)


def test_put_is_public_with_explicit_key(backend, s3_client):
    url = backend.put("services/1-abcdef.png", b"png", "image/png")
    assert url == f"{PUBLIC_BASE}/services/1-abcdef.png"
    op, params = s3_client.calls[-1]
    assert op == "put_object"
    assert params["Bucket"] == BUCKET
    assert params["Key"] == "services/1-abcdef.png"
    assert params["ACL"] == "public-read"
    assert params["ContentType"] == "image/png"
    assert "immutable" in params["CacheControl"]


def test_exists_uses_head_probe(backend, s3_client):
    url = backend.put("services/1-abcdef.png", b"12345", "image/png")
    info = backend.exists(url)
    assert info.size == 5
    assert info.uploaded_at is not None
    assert s3_client.calls[-1][0] == "head_object"


def test_exists_missing_and_foreign(backend):
    assert backend.exists(f"{PUBLIC_BASE}/services/missing.png") is None
    assert backend.exists("https://unrelated.example/x.png") is None


def test_delete_twice_succeeds(backend, s3_client):
    url = backend.put("services/1-abcdef.png", b"x", "image/png")
    backend.delete(url)
    backend.delete(url)
    assert s3_client.objects == {}


class _FailingClient(DummyS3Client):
    def __init__(self, exc):
        super().__init__()
        self.exc = exc

    def put_object(self, **params):
        raise self.exc

    def delete_object(self, Bucket, Key):
        raise self.exc

    def head_object(self, Bucket, Key):
        raise self.exc


def _client_error(code):
    return ClientError({"Error": {"Code": code, "Message": code}}, "Op")


def test_delete_not_found_is_success():
    backend = S3Backend(BUCKET, PUBLIC_BASE, client=_FailingClient(_client_error("NoSuchKey")))
    backend.delete(f"{PUBLIC_BASE}/a/b.png")


def test_delete_access_denied_propagates():
    backend = S3Backend(BUCKET, PUBLIC_BASE, client=_FailingClient(_client_error("AccessDenied")))
    with pytest.raises(StorageBackendError) as exc:
        backend.delete(f"{PUBLIC_BASE}/a/b.png")
    assert not isinstance(exc.value, StorageTimeoutError)
    assert exc.value.backend == "cloud"


def test_timeouts_are_distinguishable():
    backend = S3Backend(
        BUCKET, PUBLIC_BASE, client=_FailingClient(ReadTimeoutError(endpoint_url=PUBLIC_BASE))
    )
    with pytest.raises(StorageTimeoutError):
        backend.put("a/b.png", b"x", "image/png")
    with pytest.raises(StorageTimeoutError):
        backend.delete(f"{PUBLIC_BASE}/a/b.png")


def test_network_failure_on_put():
    backend = S3Backend(
        BUCKET, PUBLIC_BASE, client=_FailingClient(EndpointConnectionError(endpoint_url=PUBLIC_BASE))
    )
    with pytest.raises(StorageBackendError):
        backend.put("a/b.png", b"x", "image/png")


@pytest.mark.parametrize(
    "exc",
    [
        _client_error("AccessDenied"),
        ReadTimeoutError(endpoint_url=PUBLIC_BASE),
        EndpointConnectionError(endpoint_url=PUBLIC_BASE),
    ],
)
def test_probe_failures_read_as_absent(exc):
    backend = S3Backend(BUCKET, PUBLIC_BASE, client=_FailingClient(exc))
    assert backend.exists(f"{PUBLIC_BASE}/a/b.png") is None


def test_from_settings_builds_client_with_timeouts(cloud_settings, monkeypatch):
    captured = {}

    def fake_client(service, **kwargs):
        captured["service"] = service
        captured.update(kwargs)
        return DummyS3Client()

    import asset_api.app.storage.s3_backend as s3_backend

    monkeypatch.setattr(s3_backend.boto3, "client", fake_client)
    backend = S3Backend.from_settings(cloud_settings)
    assert captured["service"] == "s3"
    assert captured["aws_access_key_id"] == "AKIAEXAMPLE"
    assert captured["config"].connect_timeout == cloud_settings.s3_timeout_secs
    assert backend.public_base_url == PUBLIC_BASE
