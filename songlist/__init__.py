from .models import BroadcastMetadata, MetadataError, Songlist, UserRole, create_minimal_songlist
from .types import ParseErrorKind, ParseResult, Song

__all__ = [
    "BroadcastMetadata",
    "MetadataError",
    "ParseErrorKind",
    "ParseResult",
    "Song",
    "Songlist",
    "UserRole",
    "create_minimal_songlist",
]
