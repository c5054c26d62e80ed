from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import urljoin

import requests

from .config import CFG

LOGGER = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]

LATEST_HINT = "Update public/latest.json in the viewer repo and push it."

NO_CACHE_HEADERS = {
    "Accept": "application/json",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class DocumentLoadError(ValueError):
    """A document could not be read or parsed. The message is meant for the user."""


@dataclass(frozen=True)
class LoadedDocument:
    """
    One parsed export.

    source is "file" (picked locally) or "latest" (fetched latest.json).
    """

    source: str
    filename: Optional[str]
    raw: Any


def parse_document(raw: BytesLike, *, source: str, filename: Optional[str] = None) -> LoadedDocument:
    data = bytes(raw)
    if data.startswith(b"\xef\xbb\xbf"):
        data = data[3:]

    # ValueError covers bad UTF-8, JSONDecodeError and over-long integer literals
    try:
        doc = json.loads(data.decode("utf-8"))
    except (ValueError, RecursionError) as e:
        raise DocumentLoadError(
            f"Could not read {filename or 'the document'} as JSON (the file may be broken or in another format): {e}"
        ) from e

    LOGGER.info("loaded %s document %s (%d bytes)", source, filename or "-", len(data))
    return LoadedDocument(source=source, filename=filename, raw=doc)


def load_from_path(path: Union[str, Path]) -> LoadedDocument:
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise DocumentLoadError(f"Could not open {path}: {e}") from e
    return parse_document(data, source="file", filename=path.name)


def latest_url(base_url: str, name: str = CFG.latest_name) -> str:
    if not base_url.endswith("/"):
        base_url += "/"
    return urljoin(base_url, name)


def load_latest(
    base_url: str,
    *,
    name: str = CFG.latest_name,
    timeout: int = CFG.http_timeout,
) -> LoadedDocument:
    """
    GET <base_url>/latest.json, bypassing HTTP caches.

    Raises DocumentLoadError on network errors, non-2xx status, an HTML body
    (usually a 404 page from static hosting) or invalid JSON.
    """
    url = latest_url(base_url, name)
    try:
        r = requests.get(url, params={"_ts": int(time.time() * 1000)}, headers=NO_CACHE_HEADERS, timeout=timeout)
    except requests.RequestException as e:
        raise DocumentLoadError(f"Failed to fetch {name}: {e}\n{LATEST_HINT}") from e

    if not r.ok:
        raise DocumentLoadError(f"Failed to fetch {name}: HTTP {r.status_code}\n{LATEST_HINT}")

    content = r.content
    head = content[:200].decode("utf-8", errors="replace").lower()
    if "<html" in head or "<!doctype html" in head:
        raise DocumentLoadError(f"Got HTML instead of JSON from {url}\n{LATEST_HINT}")

    return parse_document(content, source="latest", filename=name)
