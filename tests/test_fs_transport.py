import os

import pytest

from pixelgate.fs_transport import FsTransport, build_etag

CONTENT = b"\x89PNG\r\n\x1a\nfake image body"


@pytest.fixture
def root(tmp_path):
    data = tmp_path / "data"
    data.mkdir()
    (data / "test1.png").write_bytes(CONTENT)
    (data / "sub").mkdir()
    (tmp_path / "outside.png").write_bytes(b"secret")
    return data


@pytest.fixture
def etag(root):
    return build_etag("/test1.png", os.stat(root / "test1.png"))


def test_etag_disabled_returns_200(root):
    with FsTransport(root).round_trip("/test1.png") as response:
        assert response.status == 200
        assert "ETag" not in response.headers
        assert response.read() == CONTENT
        assert response.content_length == len(CONTENT)


def test_etag_enabled(root, etag):
    with FsTransport(root, etag_enabled=True).round_trip("/test1.png") as response:
        assert response.status == 200
        assert response.headers["ETag"] == etag


def test_if_none_match_returns_304(root, etag):
    response = FsTransport(root, etag_enabled=True).round_trip("/test1.png", etag)
    assert response.status == 304
    assert response.body is None
    assert response.headers["ETag"] == etag


def test_updated_etag_returns_200(root, etag):
    with FsTransport(root, etag_enabled=True).round_trip("/test1.png", etag + "_wrong") as response:
        assert response.status == 200
        assert response.read() == CONTENT


def test_missing_file_returns_404(root):
    with FsTransport(root).round_trip("/nope.png") as response:
        assert response.status == 404
        assert response.read() == b"/nope.png doesn't exist"


def test_directory_returns_404(root):
    with FsTransport(root).round_trip("/sub") as response:
        assert response.status == 404
        assert response.read() == b"/sub is directory"


def test_path_cannot_escape_root(root):
    with FsTransport(root).round_trip("/../outside.png") as response:
        assert response.status == 404


def test_build_etag_is_quoted_and_stable(root):
    info = os.stat(root / "test1.png")
    first = build_etag("/test1.png", info)
    assert first.startswith('"') and first.endswith('"')
    assert "=" not in first
    assert first == build_etag("/test1.png", info)
    assert first != build_etag("/other.png", info)