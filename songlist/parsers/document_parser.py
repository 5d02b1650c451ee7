from __future__ import annotations

import io
import os

from docx import Document
from striprtf.striprtf import rtf_to_text

from songlist.parsers.base import BaseParser
from songlist.parsers.text import (
    decode_text,
    find_track_region_start,
    split_lines,
    split_title_artist,
    track_lines_from,
)
from songlist.types import ParseErrorKind, ParseResult


def extract_document_text(file_bytes: bytes, extension: str) -> str:
    """Return the plain text of an RTF or DOCX document."""
    if extension == ".rtf":
        return rtf_to_text(decode_text(file_bytes), errors="ignore")
    if extension == ".docx":
        document = Document(io.BytesIO(file_bytes))
        return "\n".join(paragraph.text for paragraph in document.paragraphs)
    raise ValueError(f"Unsupported document type: {extension}")


class DocumentParser(BaseParser):
    """Word-processor songlists. The first line is assumed to be a document title."""

    SOURCE_FORMAT = "document"

    def parse_bytes(self, file_bytes: bytes, file_path: str) -> ParseResult:
        extension = os.path.splitext(file_path)[1].lower()
        lines = split_lines(extract_document_text(file_bytes, extension))
        start = find_track_region_start(lines, title_line=True)
        if start is None:
            return ParseResult.failure(ParseErrorKind.NO_TRACKS_DETECTED)
        songs = [split_title_artist(line) for line in track_lines_from(lines, start)]
        return ParseResult.from_songs(songs, empty_error=ParseErrorKind.NO_VALID_SONGS)
