from __future__ import annotations

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .playlist import Playlist


class DecodeError(Exception):
    """Base class for every failure raised while decoding playlist text.

    ``playlist`` holds whatever was built before the failure so callers can
    inspect it for diagnostics.
    """

    def __init__(
        self,
        message: str,
        tag: Optional[str] = None,
        key: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.tag = tag
        self.key = key
        self.line_number: Optional[int] = None
        self.playlist: Optional[Playlist] = None

    def __str__(self) -> str:
        where = f"line {self.line_number}: " if self.line_number else ""
        return f"{where}{self.message}"


class MissingHeaderError(DecodeError):
    pass


class AttributeSyntaxError(DecodeError):
    pass


class MissingFieldError(DecodeError):
    def __init__(self, tag: str, key: str):
        super().__init__(f"{tag}: missing required attribute {key}", tag=tag, key=key)


class InvalidValueError(DecodeError):
    pass


class InvalidNumberError(InvalidValueError):
    pass


class InvalidBooleanError(InvalidValueError):
    pass


class InvalidDateTimeError(InvalidValueError):
    pass


class UnexpectedUriError(DecodeError):
    pass


class TruncatedPlaylistError(DecodeError):
    pass


class MixedPlaylistKindError(DecodeError):
    pass


class PendingEntryError(DecodeError):
    pass


class SourceError(Exception):
    """Raised when playlist text cannot be read from a file or URL."""
