from __future__ import annotations

from ..errors import InvalidBooleanError
from ..playlist import (
    AlternateMedia,
    ByteRange,
    DateRange,
    Key,
    Map,
    MediaSegment,
    Part,
    PartInf,
    ProgramDateTime,
    RenditionReport,
    ServerControl,
    SessionData,
    SessionKey,
    Skip,
    Start,
    VariantStream,
)
from .attributes import (
    extract_bool,
    extract_float,
    extract_int,
    extract_str,
    parse_attributes,
    parse_byte_range,
    parse_datetime,
    parse_resolution,
    to_float,
)

EXTM3U = "#EXTM3U"
EXTINF = "#EXTINF"
EXT_X_VERSION = "#EXT-X-VERSION"
EXT_X_TARGETDURATION = "#EXT-X-TARGETDURATION"
EXT_X_MEDIA_SEQUENCE = "#EXT-X-MEDIA-SEQUENCE"
EXT_X_DISCONTINUITY_SEQUENCE = "#EXT-X-DISCONTINUITY-SEQUENCE"
EXT_X_DISCONTINUITY = "#EXT-X-DISCONTINUITY"
EXT_X_PLAYLIST_TYPE = "#EXT-X-PLAYLIST-TYPE"
EXT_X_ALLOW_CACHE = "#EXT-X-ALLOW-CACHE"
EXT_X_INDEPENDENT_SEGMENTS = "#EXT-X-INDEPENDENT-SEGMENTS"
EXT_X_I_FRAMES_ONLY = "#EXT-X-I-FRAMES-ONLY"
EXT_X_ENDLIST = "#EXT-X-ENDLIST"
EXT_X_BYTERANGE = "#EXT-X-BYTERANGE"
EXT_X_STREAM_INF = "#EXT-X-STREAM-INF"
EXT_X_I_FRAME_STREAM_INF = "#EXT-X-I-FRAME-STREAM-INF"
EXT_X_MEDIA = "#EXT-X-MEDIA"
EXT_X_MAP = "#EXT-X-MAP"
EXT_X_KEY = "#EXT-X-KEY"
EXT_X_PROGRAM_DATE_TIME = "#EXT-X-PROGRAM-DATE-TIME"
EXT_X_DATERANGE = "#EXT-X-DATERANGE"
EXT_X_SERVER_CONTROL = "#EXT-X-SERVER-CONTROL"
EXT_X_PART_INF = "#EXT-X-PART-INF"
EXT_X_PART = "#EXT-X-PART"
EXT_X_RENDITION_REPORT = "#EXT-X-RENDITION-REPORT"
EXT_X_SKIP = "#EXT-X-SKIP"
EXT_X_SESSION_KEY = "#EXT-X-SESSION-KEY"
EXT_X_SESSION_DATA = "#EXT-X-SESSION-DATA"
EXT_X_START = "#EXT-X-START"


def tag_name(prefix: str) -> str:
    return prefix.lstrip("#")


def new_media_segment(body: str) -> MediaSegment:
    """``#EXTINF:<duration>,[<title>]``. The URI arrives on a later line."""
    tag = tag_name(EXTINF)
    duration, _, title = body.partition(",")
    return MediaSegment(duration=to_float(duration.strip(), tag, "DURATION"), title=title.strip())


def new_byte_range(body: str) -> ByteRange:
    return parse_byte_range(body.strip(), tag_name(EXT_X_BYTERANGE))


def new_variant_stream(body: str, is_iframe: bool = False) -> VariantStream:
    tag = tag_name(EXT_X_I_FRAME_STREAM_INF if is_iframe else EXT_X_STREAM_INF)
    item = parse_attributes(body, tag)

    resolution = extract_str(item, "RESOLUTION", tag, None)
    return VariantStream(
        bandwidth=extract_int(item, "BANDWIDTH", tag),
        program_id=extract_int(item, "PROGRAM-ID", tag, None),
        codecs=extract_str(item, "CODECS", tag, None),
        resolution=parse_resolution(resolution, tag, "RESOLUTION") if resolution else None,
        audio_group=extract_str(item, "AUDIO", tag, None),
        # I-frame variants name their playlist in an attribute instead of the next line.
        uri=extract_str(item, "URI", tag) if is_iframe else "",
        is_iframe=is_iframe,
        average_bandwidth=extract_int(item, "AVERAGE-BANDWIDTH", tag, None),
        frame_rate=extract_float(item, "FRAME-RATE", tag, None),
        video=extract_str(item, "VIDEO", tag, None),
        subtitles=extract_str(item, "SUBTITLES", tag, None),
        closed_captions=extract_str(item, "CLOSED-CAPTIONS", tag, None),
    )


def new_iframe_stream(body: str) -> VariantStream:
    return new_variant_stream(body, is_iframe=True)


def new_alternate_media(body: str) -> AlternateMedia:
    tag = tag_name(EXT_X_MEDIA)
    item = parse_attributes(body, tag)

    return AlternateMedia(
        type=extract_str(item, "TYPE", tag),
        group_id=extract_str(item, "GROUP-ID", tag),
        name=extract_str(item, "NAME", tag),
        language=extract_str(item, "LANGUAGE", tag, None),
        is_default=extract_bool(item, "DEFAULT", tag, False),
        is_autoselect=extract_bool(item, "AUTOSELECT", tag, False),
        uri=extract_str(item, "URI", tag, None),
        assoc_language=extract_str(item, "ASSOC-LANGUAGE", tag, None),
        is_forced=extract_bool(item, "FORCED", tag, False),
        instream_id=extract_str(item, "INSTREAM-ID", tag, None),
        characteristics=extract_str(item, "CHARACTERISTICS", tag, None),
        channels=extract_str(item, "CHANNELS", tag, None),
    )


def new_map(body: str) -> Map:
    tag = tag_name(EXT_X_MAP)
    item = parse_attributes(body, tag)

    byte_range = extract_str(item, "BYTERANGE", tag, None)
    return Map(
        uri=extract_str(item, "URI", tag),
        byte_range=parse_byte_range(byte_range, tag, "BYTERANGE") if byte_range else None,
    )


def _key_fields(body: str, tag: str) -> dict:
    item = parse_attributes(body, tag)
    return dict(
        method=extract_str(item, "METHOD", tag),
        uri=extract_str(item, "URI", tag, None),
        iv=extract_str(item, "IV", tag, None),
        key_format=extract_str(item, "KEYFORMAT", tag, None),
        key_format_versions=extract_str(item, "KEYFORMATVERSIONS", tag, None),
    )


def new_key(body: str) -> Key:
    return Key(**_key_fields(body, tag_name(EXT_X_KEY)))


def new_session_key(body: str) -> SessionKey:
    return SessionKey(**_key_fields(body, tag_name(EXT_X_SESSION_KEY)))


def new_program_date_time(body: str) -> ProgramDateTime:
    return ProgramDateTime(timestamp=parse_datetime(body, tag_name(EXT_X_PROGRAM_DATE_TIME)))


_DATERANGE_KEYS = {
    "ID", "CLASS", "START-DATE", "END-DATE", "DURATION", "PLANNED-DURATION", "END-ON-NEXT",
}


def new_date_range(body: str) -> DateRange:
    tag = tag_name(EXT_X_DATERANGE)
    item = parse_attributes(body, tag)

    end = extract_str(item, "END-DATE", tag, None)
    end_on_next = extract_str(item, "END-ON-NEXT", tag, None)
    if end_on_next not in (None, "YES"):
        raise InvalidBooleanError(
            f"{tag}: END-ON-NEXT may only be YES, got {end_on_next!r}", tag=tag, key="END-ON-NEXT"
        )

    return DateRange(
        id=extract_str(item, "ID", tag),
        start=parse_datetime(extract_str(item, "START-DATE", tag), tag, "START-DATE"),
        class_=extract_str(item, "CLASS", tag, None),
        end=parse_datetime(end, tag, "END-DATE") if end else None,
        duration=extract_float(item, "DURATION", tag, None),
        planned_duration=extract_float(item, "PLANNED-DURATION", tag, None),
        end_on_next=end_on_next == "YES",
        attrs={k: v for k, v in item.items() if k not in _DATERANGE_KEYS},
    )


def new_server_control(body: str) -> ServerControl:
    tag = tag_name(EXT_X_SERVER_CONTROL)
    item = parse_attributes(body, tag)

    return ServerControl(
        can_skip_until=extract_float(item, "CAN-SKIP-UNTIL", tag, None),
        can_skip_dateranges=extract_bool(item, "CAN-SKIP-DATERANGES", tag, False),
        hold_back=extract_float(item, "HOLD-BACK", tag, None),
        part_hold_back=extract_float(item, "PART-HOLD-BACK", tag, None),
        can_block_reload=extract_bool(item, "CAN-BLOCK-RELOAD", tag, False),
    )


def new_part_inf(body: str) -> PartInf:
    tag = tag_name(EXT_X_PART_INF)
    item = parse_attributes(body, tag)

    return PartInf(part_target=extract_float(item, "PART-TARGET", tag))


def new_part(body: str) -> Part:
    tag = tag_name(EXT_X_PART)
    item = parse_attributes(body, tag)

    byte_range = extract_str(item, "BYTERANGE", tag, None)
    return Part(
        duration=extract_float(item, "DURATION", tag),
        uri=extract_str(item, "URI", tag),
        is_independent=extract_bool(item, "INDEPENDENT", tag, False),
        byte_range=parse_byte_range(byte_range, tag, "BYTERANGE") if byte_range else None,
        is_gap=extract_bool(item, "GAP", tag, False),
    )


def new_rendition_report(body: str) -> RenditionReport:
    tag = tag_name(EXT_X_RENDITION_REPORT)
    item = parse_attributes(body, tag)

    return RenditionReport(
        uri=extract_str(item, "URI", tag),
        last_msn=extract_int(item, "LAST-MSN", tag, None),
        last_part=extract_int(item, "LAST-PART", tag, None),
    )


def new_skip(body: str) -> Skip:
    tag = tag_name(EXT_X_SKIP)
    item = parse_attributes(body, tag)

    return Skip(
        skipped_segments=extract_int(item, "SKIPPED-SEGMENTS", tag),
        recently_removed_dateranges=extract_str(item, "RECENTLY-REMOVED-DATERANGES", tag, None),
    )


def new_session_data(body: str) -> SessionData:
    tag = tag_name(EXT_X_SESSION_DATA)
    item = parse_attributes(body, tag)

    return SessionData(
        data_id=extract_str(item, "DATA-ID", tag),
        value=extract_str(item, "VALUE", tag, None),
        uri=extract_str(item, "URI", tag, None),
        language=extract_str(item, "LANGUAGE", tag, None),
    )


def new_start(body: str) -> Start:
    tag = tag_name(EXT_X_START)
    item = parse_attributes(body, tag)

    return Start(
        time_offset=extract_float(item, "TIME-OFFSET", tag),
        is_precise=extract_bool(item, "PRECISE", tag, False),
    )
