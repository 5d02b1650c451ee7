from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod

from songlist.types import ParseErrorKind, ParseResult

logger = logging.getLogger(__name__)


class BaseParser(ABC):
    SOURCE_FORMAT = ""

    def parse(self, file_path: str) -> ParseResult:
        """Parse a songlist file; never raises, failures become a typed result."""
        name = os.path.basename(file_path)
        logger.info("songlist_parse_started parser=%s file=%s", self.SOURCE_FORMAT, name)
        try:
            with open(file_path, "rb") as handle:
                file_bytes = handle.read()
        except OSError as exc:
            logger.error("songlist_read_failed parser=%s file=%s error=%s", self.SOURCE_FORMAT, name, exc)
            return ParseResult.failure(ParseErrorKind.FILE_READ_ERROR)

        try:
            result = self.parse_bytes(file_bytes, file_path)
        except Exception:
            logger.exception("songlist_parse_failed parser=%s file=%s", self.SOURCE_FORMAT, name)
            return ParseResult.failure(ParseErrorKind.UNKNOWN_ERROR)

        logger.info(
            "songlist_parse_finished parser=%s file=%s songs=%s error=%s",
            self.SOURCE_FORMAT,
            name,
            len(result.songs),
            result.error.value,
        )
        return result

    @abstractmethod
    def parse_bytes(self, file_bytes: bytes, file_path: str) -> ParseResult:
        """Parse raw songlist bytes into an ordered list of songs."""
        raise NotImplementedError
