"""Songlist format detection and parser dispatch.

Content sniffing wins over the file extension: a Rekordbox export saved with
any extension is routed to the text parser. Everything else is chosen from a
fixed extension table. The dispatcher only reads the target file.
"""

from __future__ import annotations

import logging
import os

from songlist.parsers.base import BaseParser
from songlist.parsers.document_parser import DocumentParser
from songlist.parsers.m3u8_parser import M3u8Parser
from songlist.parsers.nml_parser import NmlParser
from songlist.parsers.text import decode_text, split_lines
from songlist.parsers.txt_parser import TxtParser, is_rekordbox_export
from songlist.types import ParseErrorKind, ParseResult

logger = logging.getLogger(__name__)

FORMAT_NML = "nml"
FORMAT_TXT = "txt"
FORMAT_M3U8 = "m3u8"
FORMAT_DOCUMENT = "document"

EXTENSION_FORMATS = {
    ".nml": FORMAT_NML,
    ".xml": FORMAT_NML,
    ".txt": FORMAT_TXT,
    ".m3u8": FORMAT_M3U8,
    ".m3u": FORMAT_M3U8,
    ".rtf": FORMAT_DOCUMENT,
    ".docx": FORMAT_DOCUMENT,
}

SUPPORTED_EXTENSIONS = tuple(EXTENSION_FORMATS)

_SNIFF_BYTES = 512


class UnsupportedFormatError(ValueError):
    pass


def _read_first_line(file_path: str) -> str:
    with open(file_path, "rb") as handle:
        head = handle.read(_SNIFF_BYTES)
    lines = split_lines(decode_text(head))
    return lines[0] if lines else ""


def detect_format(file_path: str) -> str:
    """Return the format family for ``file_path``.

    Raises ``OSError`` when the file cannot be read and
    ``UnsupportedFormatError`` for an unknown extension.
    """
    extension = os.path.splitext(file_path)[1].lower()
    # .docx is a zip archive; its leading bytes never carry a text header.
    if extension != ".docx" and is_rekordbox_export(_read_first_line(file_path)):
        return FORMAT_TXT
    try:
        return EXTENSION_FORMATS[extension]
    except KeyError:
        raise UnsupportedFormatError(f"Unsupported songlist extension: {extension or '<none>'}") from None


class ParserDispatcher:
    def __init__(self, parsers: dict[str, BaseParser] | None = None):
        self._parsers = parsers or {
            FORMAT_NML: NmlParser(),
            FORMAT_TXT: TxtParser(),
            FORMAT_M3U8: M3u8Parser(),
            FORMAT_DOCUMENT: DocumentParser(),
        }

    def parse(self, file_path: str) -> ParseResult:
        try:
            source_format = detect_format(file_path)
        except (OSError, UnsupportedFormatError) as exc:
            logger.error("songlist_format_rejected file=%s error=%s", file_path, exc)
            return ParseResult.failure(ParseErrorKind.FILE_READ_ERROR)

        parser = self._parsers[source_format]
        logger.info("songlist_format_detected file=%s format=%s", os.path.basename(file_path), source_format)
        try:
            return parser.parse(file_path)
        except Exception:
            logger.exception("songlist_dispatch_failed file=%s format=%s", file_path, source_format)
            return ParseResult.failure(ParseErrorKind.UNKNOWN_ERROR)


def parse_songlist(file_path: str) -> ParseResult:
    return ParserDispatcher().parse(file_path)
