import hashlib
import threading

import pytest
import requests

from sifpull.adapters import transfer
from sifpull.kernel.errors import PullCancelled
from tests.kernel.mocks import MockImageCache

URL = "https://example.com/image.sif"


@pytest.fixture
def session():
    return transfer.new_session()


@pytest.fixture
def download_dir(tmp_path):
    path = tmp_path / "dl"
    path.mkdir()
    return path


def test_new_session_headers():
    session = transfer.new_session(token="t0k")
    assert session.headers["Authorization"] == "Bearer t0k"
    assert session.headers["User-Agent"].startswith("sifpull")
    assert "Authorization" not in transfer.new_session().headers


def test_download_verifies_checksum(session, download_dir, requests_mock):
    requests_mock.get(URL, content=b"image bytes")

    path = transfer.download(session, URL, str(download_dir),
                             expected_sha256=hashlib.sha256(b"image bytes").hexdigest())

    assert path.parent == download_dir
    assert path.read_bytes() == b"image bytes"


def test_download_checksum_mismatch_removes_temp_file(session, download_dir, requests_mock):
    requests_mock.get(URL, content=b"image bytes")

    with pytest.raises(RuntimeError, match="checksum mismatch"):
        transfer.download(session, URL, str(download_dir), expected_sha256="0" * 64)
    assert list(download_dir.iterdir()) == []


def test_download_http_error_removes_temp_file(session, download_dir, requests_mock):
    requests_mock.get(URL, status_code=500)

    with pytest.raises(requests.HTTPError):
        transfer.download(session, URL, str(download_dir))
    assert list(download_dir.iterdir()) == []


def test_download_cancelled(session, download_dir, requests_mock):
    requests_mock.get(URL, content=b"image bytes")
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(PullCancelled):
        transfer.download(session, URL, str(download_dir), cancel=cancel)
    assert list(download_dir.iterdir()) == []


def test_place_copies_atomically(tmp_path):
    src = tmp_path / "src"
    src.write_bytes(b"data")
    dest = tmp_path / "nested" / "out.sif"

    transfer.place(src, dest)

    assert dest.read_bytes() == b"data"
    assert src.exists()
    assert sorted(p.name for p in dest.parent.iterdir()) == ["out.sif"]


def test_place_move_consumes_source(tmp_path):
    src = tmp_path / "src"
    src.write_bytes(b"data")
    dest = tmp_path / "out.sif"
    dest.write_bytes(b"old")

    transfer.place(src, dest, move=True)

    assert dest.read_bytes() == b"data"
    assert not src.exists()


def _fetcher(tmp_path, content=b"fresh"):
    calls = []

    def fetch():
        calls.append(True)
        part = tmp_path / f"fetch-{len(calls)}.part"
        part.write_bytes(content)
        return part

    return fetch, calls


def test_materialize_uses_cache_hit(tmp_path):
    cached = tmp_path / "cached"
    cached.write_bytes(b"cached")
    cache = MockImageCache()
    cache.entries[("net", "k")] = cached
    fetch, calls = _fetcher(tmp_path)

    transfer.materialize(cache, "net", "k", tmp_path / "out.sif", fetch)

    assert calls == []
    assert (tmp_path / "out.sif").read_bytes() == b"cached"
    assert cached.exists()


def test_materialize_fetches_and_stores_on_miss(tmp_path):
    cache = MockImageCache()
    fetch, calls = _fetcher(tmp_path)

    transfer.materialize(cache, "net", "k", tmp_path / "out.sif", fetch)

    assert len(calls) == 1
    assert cache.stores == [("net", "k")]
    assert (tmp_path / "out.sif").read_bytes() == b"fresh"


def test_materialize_without_key_bypasses_cache(tmp_path):
    cache = MockImageCache()
    fetch, calls = _fetcher(tmp_path)

    transfer.materialize(cache, "net", None, tmp_path / "out.sif", fetch)

    assert cache.lookups == []
    assert cache.stores == []
    assert (tmp_path / "out.sif").read_bytes() == b"fresh"
    assert not (tmp_path / "fetch-1.part").exists()


def test_materialize_validation_failure_leaves_no_destination(tmp_path):
    cache = MockImageCache()
    fetch, _ = _fetcher(tmp_path)

    def reject(path):
        raise RuntimeError("not an OCI-SIF")

    with pytest.raises(RuntimeError, match="not an OCI-SIF"):
        transfer.materialize(cache, "library", "k", tmp_path / "out.sif", fetch, reject)
    assert not (tmp_path / "out.sif").exists()
    assert not (tmp_path / "fetch-1.part").exists()
    assert cache.stores == []
