from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Iterable, Optional

from ..config import DecoderConfig
from ..errors import (
    DecodeError,
    InvalidNumberError,
    InvalidValueError,
    MissingHeaderError,
    MixedPlaylistKindError,
    PendingEntryError,
    TruncatedPlaylistError,
    UnexpectedUriError,
)
from ..playlist import Discontinuity, Entry, MediaSegment, Playlist
from . import tags
from .attributes import to_bool, to_float, to_int

log = logging.getLogger(__name__)

MAX_VERSION = 255


class Phase(Enum):
    AWAITING_HEADER = auto()
    STREAMING = auto()


class Family(Enum):
    MASTER = auto()
    MEDIA = auto()
    NEUTRAL = auto()


@dataclass
class DecodeState:
    phase: Phase = Phase.AWAITING_HEADER
    family: Optional[Family] = None
    pending: Optional[Entry] = None
    pending_line: int = 0
    awaiting_uri: bool = False
    line_number: int = 0

    @property
    def seen_m3u8_header(self) -> bool:
        return self.phase is Phase.STREAMING


class Session:
    """Owns the state of one decode call and turns lines into a Playlist."""

    def __init__(self, cfg: Optional[DecoderConfig] = None):
        self.cfg = cfg or DecoderConfig()
        self.playlist = Playlist()
        self.state = DecodeState()

    def feed(self, line: str):
        """Dispatch one trimmed, non-blank line."""
        if self.state.phase is Phase.AWAITING_HEADER:
            if line != tags.EXTM3U:
                raise MissingHeaderError(
                    f"playlist must start with {tags.EXTM3U}, got {line[:40]!r}"
                )
            self.state.phase = Phase.STREAMING
            return

        if not line.startswith("#"):
            self._on_uri(line)
            return

        for prefix, family, handler in TAG_TABLE:
            if line == prefix or (prefix.endswith(":") and line.startswith(prefix)):
                self._observe(family, prefix)
                handler(self, line[len(prefix):])
                return

        log.debug(f"Ignoring unrecognised line {self.state.line_number}: {line!r}")

    def finish(self) -> Playlist:
        if self.state.phase is Phase.AWAITING_HEADER:
            raise MissingHeaderError(f"playlist is empty, expected {tags.EXTM3U}")
        if self.state.awaiting_uri:
            err = TruncatedPlaylistError(
                f"playlist ended while {type(self.state.pending).__name__} "
                f"from line {self.state.pending_line} still awaits its URI"
            )
            err.line_number = self.state.pending_line
            raise err
        return self.playlist

    def _observe(self, family: Family, prefix: str):
        if family is Family.NEUTRAL:
            return
        seen = self.state.family
        if seen is None:
            self.state.family = family
            self.playlist.is_master = family is Family.MASTER
        elif seen is not family:
            name = tags.tag_name(prefix.rstrip(":"))
            raise MixedPlaylistKindError(
                f"{name} is a {family.name.lower()} playlist tag, "
                f"but this is already a {seen.name.lower()} playlist",
                tag=name,
            )

    def _commit(self, entry: Entry):
        self.playlist.entries.append(entry)
        log.debug(f"Line {self.state.line_number}: committed {type(entry).__name__}")

    def _hold(self, entry: Entry, prefix: str):
        if self.state.pending is not None:
            raise PendingEntryError(
                f"{tags.tag_name(prefix.rstrip(':'))} found while "
                f"{type(self.state.pending).__name__} from line "
                f"{self.state.pending_line} still awaits its URI",
                tag=tags.tag_name(prefix.rstrip(":")),
            )
        self.state.pending = entry
        self.state.pending_line = self.state.line_number
        self.state.awaiting_uri = True

    def _on_uri(self, line: str):
        if not self.state.awaiting_uri:
            raise UnexpectedUriError(f"URI {line!r} does not follow a tag that needs one")
        entry = self.state.pending
        entry.uri = line
        self.state.pending = None
        self.state.awaiting_uri = False
        self._commit(entry)

    def _set_field(self, name: str, prefix: str, body: str, convert: Callable):
        tag = tags.tag_name(prefix.rstrip(":"))
        try:
            value = convert(body.strip(), tag)
        except InvalidValueError:
            if self.cfg.strict:
                raise
            log.warning(f"Line {self.state.line_number}: ignoring malformed {tag} value {body!r}")
            return
        setattr(self.playlist, name, value)

    def _on_version(self, body: str):
        self._set_field("version", tags.EXT_X_VERSION, body, _to_version)

    def _on_target_duration(self, body: str):
        self._set_field("target_duration", tags.EXT_X_TARGETDURATION, body, to_float)

    def _on_media_sequence(self, body: str):
        self._set_field("media_sequence", tags.EXT_X_MEDIA_SEQUENCE, body, to_int)

    def _on_discontinuity_sequence(self, body: str):
        self._set_field(
            "discontinuity_sequence", tags.EXT_X_DISCONTINUITY_SEQUENCE, body, to_int
        )

    def _on_allow_cache(self, body: str):
        self._set_field("allow_cache", tags.EXT_X_ALLOW_CACHE, body, to_bool)

    def _on_playlist_type(self, body: str):
        self.playlist.playlist_type = body.strip()

    def _on_independent_segments(self, body: str):
        self.playlist.independent_segments = True

    def _on_iframes_only(self, body: str):
        self.playlist.iframe_only = True

    def _on_endlist(self, body: str):
        self.playlist.is_live = False

    def _on_extinf(self, body: str):
        segment = tags.new_media_segment(body)
        pending = self.state.pending
        # A byte range seen before #EXTINF has already opened this segment.
        if isinstance(pending, MediaSegment) and pending.duration is None:
            pending.duration = segment.duration
            pending.title = segment.title
            return
        self._hold(segment, tags.EXTINF)

    def _on_byte_range(self, body: str):
        byte_range = tags.new_byte_range(body)
        pending = self.state.pending
        if isinstance(pending, MediaSegment) and pending.byte_range is None:
            pending.byte_range = byte_range
            return
        self._hold(MediaSegment(byte_range=byte_range), tags.EXT_X_BYTERANGE)

    def _on_stream_inf(self, body: str):
        self._hold(tags.new_variant_stream(body), tags.EXT_X_STREAM_INF)

    def _on_discontinuity(self, body: str):
        self._commit(Discontinuity())


def _to_version(raw: str, tag: str) -> int:
    version = to_int(raw, tag)
    if version > MAX_VERSION:
        raise InvalidNumberError(f"{tag}: version {version} is out of range", tag=tag)
    return version


def _immediate(constructor: Callable[[str], Entry]) -> Callable[[Session, str], None]:
    def handler(session: Session, body: str):
        session._commit(constructor(body))

    return handler


def _attrs(tag: str) -> str:
    return tag + ":"


# Checked in order; a prefix must come before any shorter prefix it starts with.
# Prefixes ending in ":" take a value, the rest must match the whole line.
TAG_TABLE: tuple[tuple[str, Family, Callable[[Session, str], None]], ...] = (
    (_attrs(tags.EXTINF), Family.MEDIA, Session._on_extinf),
    (_attrs(tags.EXT_X_BYTERANGE), Family.MEDIA, Session._on_byte_range),
    (_attrs(tags.EXT_X_VERSION), Family.NEUTRAL, Session._on_version),
    (_attrs(tags.EXT_X_TARGETDURATION), Family.MEDIA, Session._on_target_duration),
    (_attrs(tags.EXT_X_MEDIA_SEQUENCE), Family.MEDIA, Session._on_media_sequence),
    (_attrs(tags.EXT_X_DISCONTINUITY_SEQUENCE), Family.MEDIA, Session._on_discontinuity_sequence),
    (tags.EXT_X_DISCONTINUITY, Family.MEDIA, Session._on_discontinuity),
    (_attrs(tags.EXT_X_PLAYLIST_TYPE), Family.MEDIA, Session._on_playlist_type),
    (_attrs(tags.EXT_X_ALLOW_CACHE), Family.NEUTRAL, Session._on_allow_cache),
    (tags.EXT_X_INDEPENDENT_SEGMENTS, Family.NEUTRAL, Session._on_independent_segments),
    (tags.EXT_X_I_FRAMES_ONLY, Family.MEDIA, Session._on_iframes_only),
    (tags.EXT_X_ENDLIST, Family.MEDIA, Session._on_endlist),
    (_attrs(tags.EXT_X_I_FRAME_STREAM_INF), Family.MASTER, _immediate(tags.new_iframe_stream)),
    (_attrs(tags.EXT_X_STREAM_INF), Family.MASTER, Session._on_stream_inf),
    (_attrs(tags.EXT_X_MEDIA), Family.MASTER, _immediate(tags.new_alternate_media)),
    (_attrs(tags.EXT_X_SESSION_KEY), Family.MASTER, _immediate(tags.new_session_key)),
    (_attrs(tags.EXT_X_SESSION_DATA), Family.MASTER, _immediate(tags.new_session_data)),
    (_attrs(tags.EXT_X_MAP), Family.MEDIA, _immediate(tags.new_map)),
    (_attrs(tags.EXT_X_KEY), Family.MEDIA, _immediate(tags.new_key)),
    (_attrs(tags.EXT_X_PROGRAM_DATE_TIME), Family.MEDIA, _immediate(tags.new_program_date_time)),
    (_attrs(tags.EXT_X_DATERANGE), Family.MEDIA, _immediate(tags.new_date_range)),
    (_attrs(tags.EXT_X_SERVER_CONTROL), Family.MEDIA, _immediate(tags.new_server_control)),
    (_attrs(tags.EXT_X_PART_INF), Family.MEDIA, _immediate(tags.new_part_inf)),
    (_attrs(tags.EXT_X_PART), Family.MEDIA, _immediate(tags.new_part)),
    (_attrs(tags.EXT_X_RENDITION_REPORT), Family.MEDIA, _immediate(tags.new_rendition_report)),
    (_attrs(tags.EXT_X_SKIP), Family.MEDIA, _immediate(tags.new_skip)),
    (_attrs(tags.EXT_X_START), Family.NEUTRAL, _immediate(tags.new_start)),
)


def decode_lines(lines: Iterable[str], cfg: Optional[DecoderConfig] = None) -> Playlist:
    """Decode playlist lines into a Playlist.

    On failure the raised DecodeError carries the partially built playlist in
    its ``playlist`` attribute.
    """
    session = Session(cfg)
    try:
        for number, raw in enumerate(lines, start=1):
            line = raw.strip()
            if number == 1:
                line = line.lstrip("\ufeff")
            if not line:
                continue
            session.state.line_number = number
            session.feed(line)
        session.finish()
    except DecodeError as e:
        if e.line_number is None:
            e.line_number = session.state.line_number
        e.playlist = session.playlist
        raise

    playlist = session.playlist
    log.info(
        f"Decoded {'master' if playlist.is_master else 'media'} playlist "
        f"with {len(playlist)} entries"
    )
    return playlist


def decode(text: str, cfg: Optional[DecoderConfig] = None) -> Playlist:
    return decode_lines(text.split("\n"), cfg)


def parse(path: Path, cfg: Optional[DecoderConfig] = None) -> Playlist:
    with open(path, encoding="utf-8") as f:
        return decode_lines(f, cfg)
