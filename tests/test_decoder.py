"""Tests for the decode session: line handling, pending entries and errors."""

from __future__ import annotations

from pathlib import Path

import pytest

from hlsdecode.config import DecoderConfig
from hlsdecode.errors import (
    AttributeSyntaxError,
    DecodeError,
    InvalidNumberError,
    MissingFieldError,
    MissingHeaderError,
    MixedPlaylistKindError,
    PendingEntryError,
    TruncatedPlaylistError,
    UnexpectedUriError,
)
from hlsdecode.parsing import decode, decode_lines, parse_playlist_file
from hlsdecode.parsing.ParseM3U8 import Session
from hlsdecode.playlist import (
    ENTRY_TYPES,
    AlternateMedia,
    ByteRange,
    DateRange,
    Discontinuity,
    Key,
    Map,
    MediaSegment,
    Part,
    PartInf,
    ProgramDateTime,
    RenditionReport,
    ServerControl,
    SessionData,
    Start,
    VariantStream,
)

VOD_PLAYLIST = """#EXTM3U
#EXT-X-VERSION:3
#EXT-X-TARGETDURATION:6
#EXT-X-MEDIA-SEQUENCE:0
#EXT-X-PLAYLIST-TYPE:VOD
#EXT-X-KEY:METHOD=AES-128,URI="https://example.com/key.bin"
#EXT-X-MAP:URI="init.mp4"
#EXTINF:5.967528,
segment0.m4s
#EXTINF:5.967528,
segment1.m4s
#EXT-X-DISCONTINUITY
#EXTINF:3.123456,
segment2.m4s
#EXT-X-ENDLIST
"""

MASTER_PLAYLIST = """#EXTM3U
#EXT-X-INDEPENDENT-SEGMENTS
#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="audio",NAME="English",LANGUAGE="en",DEFAULT=YES,AUTOSELECT=YES,URI="audio/en.m3u8"
#EXT-X-STREAM-INF:PROGRAM-ID=1,BANDWIDTH=195023,CODECS="avc1.42e00a,mp4a.40.2",AUDIO="audio"
low/index.m3u8
#EXT-X-I-FRAME-STREAM-INF:BANDWIDTH=86000,URI="low/iframe.m3u8"
#EXT-X-STREAM-INF:PROGRAM-ID=1,BANDWIDTH=591680,RESOLUTION=640x360,CODECS="avc1.42e01e,mp4a.40.2"
mid/index.m3u8
#EXT-X-SESSION-DATA:DATA-ID="com.example.title",VALUE="Example"
"""


def test_end_to_end_single_segment() -> None:
    playlist = decode("#EXTM3U\n#EXTINF:9.009,\nsegment1.ts\n#EXT-X-ENDLIST\n")

    assert playlist.is_master is False
    assert playlist.is_live is False
    assert playlist.entries == [MediaSegment(duration=9.009, uri="segment1.ts")]


def test_media_playlist_fields_and_order() -> None:
    playlist = decode(VOD_PLAYLIST)

    assert playlist.version == 3
    assert playlist.target_duration == pytest.approx(6.0)
    assert playlist.media_sequence == 0
    assert playlist.playlist_type == "VOD"
    assert playlist.is_live is False
    assert [type(e) for e in playlist.entries] == [
        Key, Map, MediaSegment, MediaSegment, Discontinuity, MediaSegment,
    ]
    assert [s.uri for s in playlist.segments] == ["segment0.m4s", "segment1.m4s", "segment2.m4s"]
    assert all(isinstance(e, ENTRY_TYPES) for e in playlist)
    assert playlist.total_duration == pytest.approx(15.058512)


def test_master_playlist() -> None:
    playlist = decode(MASTER_PLAYLIST)

    assert playlist.is_master is True
    assert playlist.independent_segments is True
    assert [type(e) for e in playlist.entries] == [
        AlternateMedia, VariantStream, VariantStream, VariantStream, SessionData,
    ]
    low, iframe, mid = playlist.variants
    assert low.uri == "low/index.m3u8"
    assert low.codecs == "avc1.42e00a,mp4a.40.2"
    assert iframe.is_iframe is True
    assert iframe.uri == "low/iframe.m3u8"
    assert mid.resolution.height == 360


def test_uri_commits_at_uri_line() -> None:
    text = (
        "#EXTM3U\n"
        "#EXTINF:4,\n"
        "#EXT-X-PROGRAM-DATE-TIME:2025-11-27T10:15:00Z\n"
        "a.ts\n"
    )

    playlist = decode(text)

    assert [type(e) for e in playlist.entries] == [ProgramDateTime, MediaSegment]


def test_crlf_and_blank_lines() -> None:
    text = "\r\n#EXTM3U\r\n\r\n#EXTINF:2.0,title\r\n  seg.ts  \r\n"

    playlist = decode(text)

    assert playlist.entries == [MediaSegment(duration=2.0, title="title", uri="seg.ts")]
    assert playlist.is_live is True


def test_byte_order_mark_is_ignored() -> None:
    playlist = decode("\ufeff#EXTM3U\n#EXTINF:1,\na.ts\n")

    assert len(playlist) == 1


def test_unknown_tags_and_comments_are_skipped() -> None:
    text = "#EXTM3U\n# just a comment\n#EXT-X-FUTURE-TAG:FOO=1\n#EXTINF:1,\na.ts\n"

    assert len(decode(text)) == 1


def test_discontinuity_sequence_is_not_a_discontinuity() -> None:
    playlist = decode("#EXTM3U\n#EXT-X-DISCONTINUITY-SEQUENCE:7\n#EXTINF:1,\na.ts\n")

    assert playlist.discontinuity_sequence == 7
    assert not any(isinstance(e, Discontinuity) for e in playlist.entries)


def test_allow_cache() -> None:
    assert decode("#EXTM3U\n#EXT-X-ALLOW-CACHE:NO\n").allow_cache is False


def test_iframes_only() -> None:
    assert decode("#EXTM3U\n#EXT-X-I-FRAMES-ONLY\n").iframe_only is True


def test_byte_range_after_extinf() -> None:
    playlist = decode("#EXTM3U\n#EXTINF:10,\n#EXT-X-BYTERANGE:75232@0\nmain.ts\n")

    assert playlist.entries == [
        MediaSegment(duration=10.0, uri="main.ts", byte_range=ByteRange(75232, 0))
    ]


def test_byte_range_before_extinf() -> None:
    playlist = decode("#EXTM3U\n#EXT-X-BYTERANGE:82112@752321\n#EXTINF:10,\nmain.ts\n")

    assert playlist.entries == [
        MediaSegment(duration=10.0, uri="main.ts", byte_range=ByteRange(82112, 752321))
    ]


def test_byte_range_does_not_attach_to_map() -> None:
    playlist = decode(
        '#EXTM3U\n#EXT-X-MAP:URI="init.mp4"\n#EXT-X-BYTERANGE:100@0\n#EXTINF:1,\nmain.mp4\n'
    )

    init, segment = playlist.entries
    assert init == Map(uri="init.mp4")
    assert segment.byte_range == ByteRange(100, 0)


def test_low_latency_tags() -> None:
    text = """#EXTM3U
#EXT-X-TARGETDURATION:4
#EXT-X-SERVER-CONTROL:CAN-BLOCK-RELOAD=YES,PART-HOLD-BACK=1.0
#EXT-X-PART-INF:PART-TARGET=0.33334
#EXT-X-DATERANGE:ID="x",START-DATE="2025-01-01T00:00:00Z"
#EXT-X-PART:DURATION=0.33334,URI="part1.mp4",INDEPENDENT=YES
#EXTINF:4.0,
fileSequence271.mp4
#EXT-X-RENDITION-REPORT:URI="../1M/waitForMSN.php",LAST-MSN=273,LAST-PART=2
"""

    playlist = decode(text)

    assert [type(e) for e in playlist.entries] == [
        ServerControl, PartInf, DateRange, Part, MediaSegment, RenditionReport,
    ]


def test_start_is_allowed_in_either_kind() -> None:
    master = decode('#EXTM3U\n#EXT-X-START:TIME-OFFSET=10\n#EXT-X-STREAM-INF:BANDWIDTH=1\nv.m3u8\n')
    media = decode("#EXTM3U\n#EXT-X-START:TIME-OFFSET=10\n#EXTINF:1,\na.ts\n")

    assert isinstance(master.entries[0], Start)
    assert master.is_master is True
    assert isinstance(media.entries[0], Start)
    assert media.is_master is False


def test_decoding_is_deterministic() -> None:
    assert decode(VOD_PLAYLIST) == decode(VOD_PLAYLIST)
    assert decode(MASTER_PLAYLIST) == decode(MASTER_PLAYLIST)


def test_missing_header() -> None:
    with pytest.raises(MissingHeaderError):
        decode("#EXTINF:9.009,\nsegment1.ts\n#EXT-X-ENDLIST\n")


def test_header_must_be_exact() -> None:
    with pytest.raises(MissingHeaderError):
        decode("#EXTM3U8\n#EXTINF:1,\na.ts\n")


def test_empty_input() -> None:
    with pytest.raises(MissingHeaderError):
        decode("\n\n")


def test_truncated_playlist() -> None:
    with pytest.raises(TruncatedPlaylistError) as excinfo:
        decode("#EXTM3U\n#EXTINF:1,\na.ts\n#EXTINF:9.009,\n")

    assert excinfo.value.line_number == 4
    assert len(excinfo.value.playlist) == 1


def test_truncated_variant() -> None:
    with pytest.raises(TruncatedPlaylistError):
        decode("#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\n")


def test_unexpected_uri() -> None:
    with pytest.raises(UnexpectedUriError) as excinfo:
        decode("#EXTM3U\n#EXTINF:1,\na.ts\nb.ts\n")

    assert excinfo.value.line_number == 4
    assert [s.uri for s in excinfo.value.playlist.segments] == ["a.ts"]


def test_mixed_playlist_kinds() -> None:
    text = "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\nv.m3u8\n#EXTINF:1,\na.ts\n"

    with pytest.raises(MixedPlaylistKindError) as excinfo:
        decode(text)

    assert excinfo.value.tag == "EXTINF"
    assert excinfo.value.playlist.is_master is True


def test_mixed_playlist_kinds_media_first() -> None:
    with pytest.raises(MixedPlaylistKindError):
        decode("#EXTM3U\n#EXT-X-TARGETDURATION:10\n#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID=a,NAME=b\n")


def test_second_extinf_before_uri() -> None:
    with pytest.raises(PendingEntryError):
        decode("#EXTM3U\n#EXTINF:1,\n#EXTINF:2,\na.ts\n")


def test_malformed_tag_aborts_with_partial_result() -> None:
    text = "#EXTM3U\n#EXTINF:1,\na.ts\n#EXT-X-KEY:URI=\"k\"\n#EXTINF:1,\nb.ts\n"

    with pytest.raises(MissingFieldError) as excinfo:
        decode(text)

    err = excinfo.value
    assert isinstance(err, DecodeError)
    assert err.tag == "EXT-X-KEY"
    assert err.key == "METHOD"
    assert err.line_number == 4
    assert [s.uri for s in err.playlist.segments] == ["a.ts"]
    assert "line 4" in str(err)


def test_attribute_syntax_error() -> None:
    with pytest.raises(AttributeSyntaxError):
        decode("#EXTM3U\n#EXT-X-STREAM-INF:oops\nv.m3u8\n")


def test_unknown_tags_sharing_a_known_prefix_are_skipped() -> None:
    playlist = decode("#EXTM3U\n#EXT-X-DISCONTINUITYFOO\n#EXT-X-ENDLISTX\n#EXTINF:1,\na.ts\n")

    assert playlist.entries == [MediaSegment(duration=1.0, uri="a.ts")]
    assert playlist.is_live is True


def test_huge_media_sequence_is_a_decode_error() -> None:
    with pytest.raises(InvalidNumberError) as excinfo:
        decode("#EXTM3U\n#EXT-X-MEDIA-SEQUENCE:" + "9" * 5000 + "\n")

    assert excinfo.value.line_number == 2
    assert excinfo.value.playlist is not None


def test_version_must_fit_in_a_byte() -> None:
    assert decode("#EXTM3U\n#EXT-X-VERSION:255\n").version == 255

    with pytest.raises(InvalidNumberError) as excinfo:
        decode("#EXTM3U\n#EXT-X-VERSION:999\n")

    assert excinfo.value.tag == "EXT-X-VERSION"


def test_strict_mode_rejects_bad_sequence() -> None:
    with pytest.raises(InvalidNumberError):
        decode("#EXTM3U\n#EXT-X-DISCONTINUITY-SEQUENCE:seven\n")


def test_permissive_mode_skips_bad_sequence(caplog) -> None:
    cfg = DecoderConfig(strict=False)

    playlist = decode("#EXTM3U\n#EXT-X-DISCONTINUITY-SEQUENCE:seven\n#EXTINF:1,\na.ts\n", cfg)

    assert playlist.discontinuity_sequence is None
    assert len(playlist) == 1
    assert "DISCONTINUITY-SEQUENCE" in caplog.text


def test_permissive_mode_still_fails_on_entries() -> None:
    with pytest.raises(InvalidNumberError):
        decode("#EXTM3U\n#EXTINF:long,\na.ts\n", DecoderConfig(strict=False))


def test_session_state_lifecycle() -> None:
    session = Session()
    assert session.state.seen_m3u8_header is False

    session.feed("#EXTM3U")
    session.feed("#EXTINF:1,")
    assert session.state.seen_m3u8_header is True
    assert session.state.awaiting_uri is True
    assert isinstance(session.state.pending, MediaSegment)
    assert len(session.playlist) == 0

    session.feed("a.ts")
    assert session.state.awaiting_uri is False
    assert session.state.pending is None
    assert len(session.finish()) == 1


def test_decode_lines_accepts_any_iterable() -> None:
    playlist = decode_lines(iter(["#EXTM3U\n", "#EXTINF:1,\n", "a.ts\n"]))

    assert playlist.segments[0].uri == "a.ts"


def test_parse_playlist_file(tmp_path: Path) -> None:
    path = tmp_path / "index.m3u8"
    path.write_text(VOD_PLAYLIST, encoding="utf-8")

    playlist = parse_playlist_file(path)

    assert len(playlist.segments) == 3


def test_parse_playlist_file_rejects_other_formats(tmp_path: Path) -> None:
    path = tmp_path / "list.xspf"
    path.write_text("<playlist/>", encoding="utf-8")

    with pytest.raises(ValueError):
        parse_playlist_file(path)
