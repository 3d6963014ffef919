from pathlib import Path
from typing import Optional

from ..config import DecoderConfig
from ..playlist import Playlist
from . import ParseM3U8
from .ParseM3U8 import decode, decode_lines


def parse_playlist_file(path: Path, cfg: Optional[DecoderConfig] = None) -> Playlist:
    suffix = path.suffix.lower()
    if suffix in {".m3u", ".m3u8"}:
        return ParseM3U8.parse(path, cfg)
    raise ValueError(f"Unsupported playlist format: {suffix}")
