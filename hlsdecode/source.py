from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import requests

from .config import HlsConfig
from .errors import SourceError
from .parsing import decode
from .playlist import Playlist

log = logging.getLogger(__name__)

PLAYLIST_CONTENT_TYPES: frozenset[str] = frozenset({
    "application/vnd.apple.mpegurl",
    "application/x-mpegurl",
    "audio/mpegurl",
    "audio/x-mpegurl",
})


def is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


def read_text(location: str, cfg: Optional[HlsConfig] = None) -> str:
    """Return the full playlist text at a local path or an http(s) URL."""
    cfg = cfg or HlsConfig()

    if is_url(location):
        return _fetch(location, cfg)

    path = Path(location)
    log.debug(f"Reading playlist file {path}")
    try:
        return path.read_text(encoding=cfg.source.encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise SourceError(f"Could not read {path}: {e}") from e


def _fetch(url: str, cfg: HlsConfig) -> str:
    log.debug(f"Fetching playlist {url}")
    try:
        response = requests.get(
            url,
            timeout=cfg.source.timeout,
            headers={"User-Agent": cfg.source.user_agent},
        )
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise SourceError(f"Could not fetch {url}: {e}") from e

    content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type and content_type not in PLAYLIST_CONTENT_TYPES:
        log.warning(f"{url} served unexpected content-type {content_type!r}")

    response.encoding = response.encoding or cfg.source.encoding
    return response.text


def decode_location(location: str, cfg: Optional[HlsConfig] = None) -> Playlist:
    cfg = cfg or HlsConfig()
    return decode(read_text(location, cfg), cfg.decoder)
