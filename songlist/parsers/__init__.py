from .dispatcher import (
    SUPPORTED_EXTENSIONS,
    ParserDispatcher,
    UnsupportedFormatError,
    detect_format,
    parse_songlist,
)

__all__ = [
    "ParserDispatcher",
    "SUPPORTED_EXTENSIONS",
    "UnsupportedFormatError",
    "detect_format",
    "parse_songlist",
]
