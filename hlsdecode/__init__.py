from .config import HlsConfig, load
from .errors import DecodeError, SourceError
from .playlist import Playlist, Entry, ENTRY_TYPES
from .parsing import decode, parse_playlist_file
from .source import decode_location, read_text
