import re

import pytest

from pixelgate.security import (
    INVALID_SIGNATURE,
    INVALID_SIGNATURE_ENCODING,
    SignatureError,
    StatusError,
    check_dimensions,
    signature_for,
    verify_signature,
    verify_source_url,
)

KEYS = [b"test-key"]
SALTS = [b"test-salt"]


def test_verify_signature():
    assert verify_signature("dtLwhdnPPiu_epMl1LrzheLpvHas-4mwvY6L3Z8WwlY", "asd", KEYS, SALTS) is None


def test_verify_signature_truncated():
    assert verify_signature("dtLwhdnPPis", "asd", KEYS, SALTS, 8) is None


def test_verify_signature_invalid():
    with pytest.raises(SignatureError) as info:
        verify_signature("dtLwhdnPPis", "asd", KEYS, SALTS)
    assert str(info.value) == INVALID_SIGNATURE


def test_verify_signature_multiple_pairs():
    keys = KEYS + [b"test-key2"]
    salts = SALTS + [b"test-salt2"]

    assert verify_signature("dtLwhdnPPiu_epMl1LrzheLpvHas-4mwvY6L3Z8WwlY", "asd", keys, salts) is None
    assert verify_signature("jbDffNPt1-XBgDccsaE-XJB9lx8JIJqdeYIZKgOqZpg", "asd", keys, salts) is None

    with pytest.raises(SignatureError):
        verify_signature("dtLwhdnPPis", "asd", keys, salts)


def test_invalid_encoding():
    with pytest.raises(SignatureError) as info:
        verify_signature("not+base64/!", "asd", KEYS, SALTS)
    assert str(info.value) == INVALID_SIGNATURE_ENCODING


def test_no_keys_accepts_anything():
    assert verify_signature("garbage!", "asd", [], []) is None


def test_signature_for_truncation():
    full = signature_for("asd", b"test-key", b"test-salt", 32)
    short = signature_for("asd", b"test-key", b"test-salt", 8)
    assert len(full) == 32
    assert short == full[:8]


def test_source_url_empty_allow_list():
    assert verify_source_url("s3://images/lorem/ipsum.jpg", []) is True


@pytest.mark.parametrize(
    "url, expected",
    [
        ("http://images.dev/lorem/ipsum.jpg", True),
        ("local:///test1.png", True),
        ("s3://images/lorem/ipsum.jpg", False),
        ("http://a-1.mycdn.dev/lorem/ipsum.jpg", True),
        ("http://other.dev/.mycdn.dev/lorem/ipsum.jpg", False),
    ],
)
def test_source_url_patterns(url, expected):
    sources = [
        re.compile(r"^local://"),
        re.compile(r"^http://images\.dev/"),
        re.compile(r"^http://[^/]*\.mycdn\.dev/"),
    ]
    assert verify_source_url(url, sources) is expected


def test_check_dimensions_within_limit():
    assert check_dimensions(10, 10, 100) is None


def test_check_dimensions_too_big():
    with pytest.raises(StatusError) as info:
        check_dimensions(11, 10, 100)
    assert info.value.status_code == 422
    assert info.value.public_message == "Invalid source image"