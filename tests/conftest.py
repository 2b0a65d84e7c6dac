import asyncio
from pathlib import Path
from typing import Any

import pytest

from httpfs.http.model import HTTPRequest, HTTPResponse
from httpfs.services.files import FileService


@pytest.fixture
def root(tmp_path: Path) -> Path:
	"""A static root with an index, a nested directory and a few typed files."""
	(tmp_path / "index.html").write_bytes(b"Hello!\n")
	(tmp_path / "data.json").write_bytes(b'{"ok": true}')
	(tmp_path / "blob.bin").write_bytes(bytes(range(256)))
	(tmp_path / "README").write_bytes(b"no extension")
	docs = tmp_path / "docs"
	docs.mkdir()
	(docs / "index.html").write_bytes(b"<h1>Docs</h1>")
	(docs / "style.css").write_bytes(b"body{}")
	(tmp_path / "empty").mkdir()
	return tmp_path


@pytest.fixture
def service(root: Path) -> FileService:
	return FileService(root)


def fetch(
	service: FileService, method: str = "GET", path: str = "/", **kwargs: Any
) -> HTTPResponse:
	"""Runs the service on a single request, outside of any server."""
	return asyncio.run(service.process(HTTPRequest.Create(method, path, **kwargs)))


# EOF
