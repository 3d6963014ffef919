from __future__ import annotations

from .playlist import (
    AlternateMedia,
    Discontinuity,
    Entry,
    Key,
    Map,
    MediaSegment,
    Playlist,
    ProgramDateTime,
    VariantStream,
)

DIV = "─"
WIDTH = 72


def _fmt_time(secs: float | None) -> str:
    if secs is None:
        return "--:--"
    secs = int(secs)
    return f"{secs // 60}:{secs % 60:02d}"


def _trunc(s: str, n: int) -> str:
    s = s or ""
    return s if len(s) <= n else s[:max(0, n - 1)] + "…"


def _describe(entry: Entry) -> str:
    if isinstance(entry, MediaSegment):
        rng = f"  [{entry.byte_range}]" if entry.byte_range else ""
        dur = "?" if entry.duration is None else f"{entry.duration:.3f}s"
        return f"{dur:>10}  {entry.uri}{rng}"
    if isinstance(entry, VariantStream):
        kind = "I-FRAME" if entry.is_iframe else "VARIANT"
        res = f" {entry.resolution}" if entry.resolution else ""
        return f"{kind:>10}  {entry.bandwidth} bps{res}  {entry.uri}"
    if isinstance(entry, AlternateMedia):
        return f"{entry.type:>10}  {entry.group_id}/{entry.name}  {entry.uri or ''}"
    if isinstance(entry, Map):
        return f"{'MAP':>10}  {entry.uri}"
    if isinstance(entry, Key):
        return f"{'KEY':>10}  {entry.method}  {entry.uri or ''}"
    if isinstance(entry, ProgramDateTime):
        return f"{'PDT':>10}  {entry.timestamp.isoformat()}"
    if isinstance(entry, Discontinuity):
        return f"{'DISCONT':>10}"
    return f"{type(entry).__name__.upper():>10}"


def summarize(playlist: Playlist, width: int = WIDTH) -> str:
    kind = "MASTER" if playlist.is_master else "MEDIA"
    state = "LIVE" if playlist.is_live else "VOD/ENDED"

    lines = [DIV * width, f"  {kind} PLAYLIST  ·  {state}", DIV * width]
    if playlist.version is not None:
        lines.append(f"  version          {playlist.version}")
    if playlist.target_duration is not None:
        lines.append(f"  target duration  {playlist.target_duration:g}s")
    if playlist.media_sequence is not None:
        lines.append(f"  media sequence   {playlist.media_sequence}")
    if playlist.playlist_type:
        lines.append(f"  type             {playlist.playlist_type}")
    if not playlist.is_master:
        lines.append(
            f"  segments         {len(playlist.segments)}"
            f"  ({_fmt_time(playlist.total_duration)})"
        )
    lines.append(DIV * width)

    for entry in playlist.entries:
        lines.append(_trunc(_describe(entry), width))

    return "\n".join(lines)
