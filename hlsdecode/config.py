from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


@dataclass
class DecoderConfig:
    strict: bool = True


@dataclass
class SourceConfig:
    timeout: float = 10.0
    user_agent: str = "hlsdecode/0.1"
    encoding: str = "utf-8"


@dataclass
class LoggingConfig:
    level: str = "WARNING"
    file: Optional[str] = None
    format: str = LOG_FORMAT


@dataclass
class HlsConfig:
    decoder: DecoderConfig = field(default_factory=DecoderConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load(path: Path = Path("hlsdecode.yaml")) -> HlsConfig:
    raw: dict = {}
    if path.exists():
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    decoder_raw = raw.get("decoder", {})
    source_raw = raw.get("source", {})
    logging_raw = raw.get("logging", {})

    return HlsConfig(
        decoder=DecoderConfig(
            strict=decoder_raw.get("strict", True),
        ),
        source=SourceConfig(
            timeout=source_raw.get("timeout", 10.0),
            user_agent=source_raw.get("user_agent", "hlsdecode/0.1"),
            encoding=source_raw.get("encoding", "utf-8"),
        ),
        logging=LoggingConfig(
            level=logging_raw.get("level", "WARNING"),
            file=logging_raw.get("file"),
            format=logging_raw.get("format", LOG_FORMAT),
        ),
    )
