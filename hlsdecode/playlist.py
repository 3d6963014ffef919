from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional, Union, get_args


@dataclass
class ByteRange:
    length: int
    offset: Optional[int] = None

    def __str__(self) -> str:
        if self.offset is None:
            return str(self.length)
        return f"{self.length}@{self.offset}"


@dataclass
class Resolution:
    width: int
    height: int

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass
class MediaSegment:
    duration: Optional[float] = None
    title: str = ""
    uri: str = ""
    byte_range: Optional[ByteRange] = None

    def __str__(self) -> str:
        return self.title or self.uri


@dataclass
class VariantStream:
    bandwidth: int
    program_id: Optional[int] = None
    codecs: Optional[str] = None
    resolution: Optional[Resolution] = None
    audio_group: Optional[str] = None
    uri: str = ""
    is_iframe: bool = False
    average_bandwidth: Optional[int] = None
    frame_rate: Optional[float] = None
    video: Optional[str] = None
    subtitles: Optional[str] = None
    closed_captions: Optional[str] = None

    def __str__(self) -> str:
        return self.uri


@dataclass
class AlternateMedia:
    type: str
    group_id: str
    name: str
    language: Optional[str] = None
    is_default: bool = False
    is_autoselect: bool = False
    uri: Optional[str] = None
    assoc_language: Optional[str] = None
    is_forced: bool = False
    instream_id: Optional[str] = None
    characteristics: Optional[str] = None
    channels: Optional[str] = None


@dataclass
class Map:
    uri: str
    byte_range: Optional[ByteRange] = None


@dataclass
class Key:
    method: str
    uri: Optional[str] = None
    iv: Optional[str] = None
    key_format: Optional[str] = None
    key_format_versions: Optional[str] = None


@dataclass
class ProgramDateTime:
    timestamp: datetime


@dataclass
class DateRange:
    id: str
    start: datetime
    class_: Optional[str] = None
    end: Optional[datetime] = None
    duration: Optional[float] = None
    planned_duration: Optional[float] = None
    end_on_next: bool = False
    attrs: dict[str, str] = field(default_factory=dict)


@dataclass
class ServerControl:
    can_skip_until: Optional[float] = None
    can_skip_dateranges: bool = False
    hold_back: Optional[float] = None
    part_hold_back: Optional[float] = None
    can_block_reload: bool = False


@dataclass
class PartInf:
    part_target: float


@dataclass
class Part:
    duration: float
    uri: str
    is_independent: bool = False
    byte_range: Optional[ByteRange] = None
    is_gap: bool = False


@dataclass
class RenditionReport:
    uri: str
    last_msn: Optional[int] = None
    last_part: Optional[int] = None


@dataclass
class Skip:
    skipped_segments: int
    recently_removed_dateranges: Optional[str] = None


@dataclass
class SessionKey:
    method: str
    uri: Optional[str] = None
    iv: Optional[str] = None
    key_format: Optional[str] = None
    key_format_versions: Optional[str] = None


@dataclass
class SessionData:
    data_id: str
    value: Optional[str] = None
    uri: Optional[str] = None
    language: Optional[str] = None


@dataclass
class Start:
    time_offset: float
    is_precise: bool = False


@dataclass
class Discontinuity:
    pass


Entry = Union[
    MediaSegment,
    VariantStream,
    AlternateMedia,
    Map,
    Key,
    ProgramDateTime,
    DateRange,
    ServerControl,
    PartInf,
    Part,
    RenditionReport,
    Skip,
    SessionKey,
    SessionData,
    Start,
    Discontinuity,
]

ENTRY_TYPES: tuple[type, ...] = get_args(Entry)


@dataclass
class Playlist:
    is_master: bool = False
    is_live: bool = True
    version: Optional[int] = None
    target_duration: Optional[float] = None
    media_sequence: Optional[int] = None
    discontinuity_sequence: Optional[int] = None
    playlist_type: Optional[str] = None
    allow_cache: Optional[bool] = None
    independent_segments: bool = False
    iframe_only: bool = False
    entries: list[Entry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    @property
    def segments(self) -> list[MediaSegment]:
        return [e for e in self.entries if isinstance(e, MediaSegment)]

    @property
    def variants(self) -> list[VariantStream]:
        return [e for e in self.entries if isinstance(e, VariantStream)]

    @property
    def total_duration(self) -> float:
        return sum(s.duration or 0.0 for s in self.segments)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["entries"] = [
            {"type": type(entry).__name__, **_jsonable(asdict(entry))}
            for entry in self.entries
        ]
        return data


def _jsonable(values: dict) -> dict:
    out = {}
    for key, value in values.items():
        if isinstance(value, datetime):
            value = value.isoformat()
        # DateRange.class_ dodges the keyword; the attribute is CLASS
        out["class" if key == "class_" else key] = value
    return out
