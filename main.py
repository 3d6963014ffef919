import argparse
import json
import logging
import sys
from pathlib import Path

from hlsdecode.config import load
from hlsdecode.errors import DecodeError, SourceError
from hlsdecode.report import summarize
from hlsdecode.source import decode_location

log = logging.getLogger("hlsdecode")


def main(
    location: str,
    config_path: Path,
    as_json: bool = False,
    permissive: bool = False,
) -> int:

    cfg = load(config_path)
    if permissive:
        cfg.decoder.strict = False

    logging.basicConfig(
        filename=cfg.logging.file,
        level=cfg.logging.level.upper(),
        format=cfg.logging.format,
    )

    try:
        playlist = decode_location(location, cfg)
    except SourceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except DecodeError as e:
        log.error(f"Decoding {location} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        if e.playlist is not None:
            print(f"({len(e.playlist)} entries decoded before the error)", file=sys.stderr)
        return 1

    if as_json:
        print(json.dumps(playlist.to_dict(), indent=2))
    else:
        print(summarize(playlist))
    return 0


if __name__ == "__main__":
    args = argparse.ArgumentParser(description="Decode an HLS playlist")
    args.add_argument("location", help="Path or http(s) URL of an .m3u8 playlist")
    args.add_argument("--config", "-c", type=Path, default=Path("hlsdecode.yaml"), help="Path to configuration file")
    args.add_argument("--json", action="store_true", help="Print the decoded playlist as JSON")
    args.add_argument("--permissive", action="store_true", help="Skip malformed playlist-level values instead of failing")
    parsed = args.parse_args()

    sys.exit(main(
        location=parsed.location,
        config_path=parsed.config,
        as_json=parsed.json,
        permissive=parsed.permissive,
    ))
