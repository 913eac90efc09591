"""Normalization of raw extracted PDF text."""

import asyncio
import math
import re
from collections.abc import Iterable

from pdfquiz.logging.logger import Log

_NON_PRINTABLE = re.compile(r"[^\x20-\x7E\t\n]")
_PAGE_NUMBER_LINE = re.compile(r"\s*[0-9]+\s*")
_PAGE_LABEL_LINE = re.compile(r"\s*Page\s+[0-9]+\s*")

_BYTES_PER_CHAR = 2
_MIB = 1024 * 1024


def split_into_chunks(text: str, chunk_size: int) -> list[str]:
    """Split text into pieces of at most chunk_size chars.

    A piece ends just before the last space inside its window when there is one,
    otherwise it is cut hard at chunk_size. Joining the pieces gives back text.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")
    chunks: list[str] = []
    start = 0
    while start < len(text):
        end = min(start + chunk_size, len(text))
        if end < len(text):
            last_space = text.rfind(" ", start + 1, end + 1)
            if last_space > start:
                end = last_space
        chunks.append(text[start:end])
        start = end
    return chunks


def estimate_memory_mb(text_length: int, chunk_size: int) -> float:
    """Rough memory estimate for processing text_length chars in chunks."""
    chunks = math.ceil(text_length / chunk_size)
    return chunks * chunk_size * _BYTES_PER_CHAR / _MIB


class TextCleaner:
    """Normalizes raw extracted text into a single line of printable ASCII.

    Line breaks are normalized, characters outside printable ASCII become spaces,
    page-number lines ("12", "Page 12") are dropped, and every whitespace run
    collapses to one space. The result is trimmed and cleaning it again is a no-op.
    """

    def __init__(
        self,
        *,
        chunk_size: int = 10_000,
        chunk_threshold_mb: float = 10.0,
        yield_every: int = 10,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self._chunk_size = chunk_size
        self._chunk_threshold_mb = chunk_threshold_mb
        self._yield_every = max(1, yield_every)

    def clean(self, raw: str) -> str:
        """Clean the whole text in one pass."""
        text = self._normalize(raw)
        return " ".join(self._line_tokens(text.split("\n")))

    def should_use_chunking(self, text_length: int) -> bool:
        return estimate_memory_mb(text_length, self._chunk_size) > self._chunk_threshold_mb

    async def clean_async(self, raw: str) -> str:
        """Clean text, streaming over chunks when it is large."""
        if not self.should_use_chunking(len(raw)):
            return self.clean(raw)
        Log.info(
            f"Cleaning {len(raw)} chars in chunks of {self._chunk_size}",
            estimated_mb=round(estimate_memory_mb(len(raw), self._chunk_size), 2),
        )
        return await self.clean_chunked(raw)

    async def clean_chunked(self, raw: str, chunk_size: int | None = None) -> str:
        """Clean text chunk by chunk, yielding to the event loop periodically.

        Produces exactly what clean() produces for the same input.
        """
        size = chunk_size or self._chunk_size
        tokens: list[str] = []
        pending = ""
        held_cr = False
        for index, chunk in enumerate(split_into_chunks(raw, size), start=1):
            piece = "\r" + chunk if held_cr else chunk
            # a CR at the end may be the first half of a CRLF split across chunks
            held_cr = piece.endswith("\r")
            if held_cr:
                piece = piece[:-1]
            lines = (pending + self._normalize(piece)).split("\n")
            pending = lines.pop()
            tokens.extend(self._line_tokens(lines))
            if index % self._yield_every == 0:
                await asyncio.sleep(0)

        tail = pending + ("\n" if held_cr else "")
        tokens.extend(self._line_tokens(tail.split("\n")))
        return " ".join(tokens)

    @staticmethod
    def _normalize(text: str) -> str:
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        return _NON_PRINTABLE.sub(" ", text)

    @staticmethod
    def _line_tokens(lines: Iterable[str]) -> list[str]:
        tokens: list[str] = []
        for line in lines:
            if _PAGE_NUMBER_LINE.fullmatch(line) or _PAGE_LABEL_LINE.fullmatch(line):
                continue
            tokens.extend(line.split())
        return tokens
