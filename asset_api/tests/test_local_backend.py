import os
import stat
import threading

import pytest

from asset_api.app.storage.errors import StorageBackendError
from asset_api.app.storage.local_backend import LocalBackend


@pytest.fixture
def backend(tmp_path):
    return LocalBackend(tmp_path / "uploads")


def test_put_creates_folders_and_returns_public_url(backend, tmp_path):
    url = backend.put("home/services/1-abcdef.png", b"png-bytes")
    assert url == "/uploads/home/services/1-abcdef.png"
    assert (tmp_path / "uploads/home/services/1-abcdef.png").read_bytes() == b"png-bytes"


def test_exists_reports_size(backend):
    url = backend.put("articles/1-abcdef.jpg", b"x" * 42)
    info = backend.exists(url)
    assert info is not None
    assert info.size == 42
    assert info.uploaded_at is not None


def test_exists_on_missing_file(backend):
    assert backend.exists("/uploads/articles/nope.jpg") is None


def test_delete_is_idempotent(backend):
    url = backend.put("articles/1-abcdef.jpg", b"data")
    backend.delete(url)
    backend.delete(url)
    assert backend.exists(url) is None


def test_foreign_and_escaping_urls_are_not_owned(backend, tmp_path):
    secret = tmp_path / "secret.txt"
    secret.write_text("keep")
    for url in (
        "/uploads/../secret.txt",
        "/uploads/%2e%2e/secret.txt",
        "/uploads/services/%00.png",
        "/static/x.png",
    ):
        assert backend.exists(url) is None
        backend.delete(url)
    assert secret.exists()


def test_delete_on_folder_url_is_noop(backend):
    url = backend.put("services/1-abcdef.png", b"x")
    assert backend.exists("/uploads/services") is None
    backend.delete("/uploads/services")
    assert backend.exists(url) is not None


def test_uploads_root_itself_is_not_an_asset(backend):
    backend.put("a/1-abcdef.png", b"x")
    assert backend.exists("/uploads/") is None


def test_concurrent_first_writers_share_folder(backend):
    errors = []

    def write(i):
        try:
            backend.put(f"fresh/{i}-token.png", b"x")
        except Exception as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=write, args=(i,)) for i in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert errors == []
    assert len(list((backend.base_dir / "fresh").iterdir())) == 16


@pytest.mark.skipif(os.geteuid() == 0, reason="root ignores permission bits")
def test_permission_errors_surface(backend):
    url = backend.put("locked/1-abcdef.png", b"x")
    folder = backend.base_dir / "locked"
    folder.chmod(stat.S_IRUSR | stat.S_IXUSR)
    try:
        with pytest.raises(StorageBackendError):
            backend.delete(url)
    finally:
        folder.chmod(stat.S_IRWXU)
