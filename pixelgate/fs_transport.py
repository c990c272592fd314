"""Serving source images from a local directory, with ETag support."""

from __future__ import annotations

import base64
import hashlib
import io
import os
import posixpath
import stat
from dataclasses import dataclass, field
from typing import BinaryIO


@dataclass
class FileResponse:
    """The result of fetching a local file; close it to release the body."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: BinaryIO | None = None
    content_length: int = 0

    def read(self) -> bytes:
        return self.body.read() if self.body is not None else b""

    def close(self) -> None:
        if self.body is not None:
            self.body.close()

    def __enter__(self) -> FileResponse:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def build_etag(path: str, stat_result: os.stat_result) -> str:
    """Return a quoted ETag derived from the path, size and modification time."""
    tag = f"{path}__{stat_result.st_size}__{stat_result.st_mtime_ns}"
    digest = hashlib.md5(tag.encode()).digest()
    return '"' + base64.urlsafe_b64encode(digest).rstrip(b"=").decode() + '"'


class FsTransport:
    """Fetches files below a root directory; paths cannot escape the root."""

    def __init__(self, root: str | os.PathLike[str], etag_enabled: bool = False) -> None:
        self.root = os.fspath(root)
        self.etag_enabled = etag_enabled

    def _resolve(self, path: str) -> str:
        if os.sep != "/" and os.sep in path:
            raise ValueError("invalid character in file path")
        relative = posixpath.normpath("/" + path).lstrip("/")
        return os.path.join(self.root, *relative.split("/"))

    def round_trip(self, path: str, if_none_match: str = "") -> FileResponse:
        """Fetch a file by URL path, honouring If-None-Match when ETags are enabled."""
        headers: dict[str, str] = {}
        full_path = self._resolve(path)

        try:
            info = os.stat(full_path)
        except (FileNotFoundError, NotADirectoryError):
            return FileResponse(404, headers, io.BytesIO(f"{path} doesn't exist".encode()))

        if stat.S_ISDIR(info.st_mode):
            return FileResponse(404, headers, io.BytesIO(f"{path} is directory".encode()))

        body = open(full_path, "rb")
        info = os.fstat(body.fileno())

        if self.etag_enabled:
            etag = build_etag(path, info)
            headers["ETag"] = etag
            if etag == if_none_match:
                body.close()
                return FileResponse(304, headers)

        return FileResponse(200, headers, body, info.st_size)