"""SRT line classification and reconstruction."""

from __future__ import annotations

import re
import logging
from typing import Mapping

from .models import Line, LineRole, ParsedDocument

logger = logging.getLogger(__name__)

INDEX_LINE = re.compile(r"^\d+$")
TIMESTAMP_LINE = re.compile(r"^\d{2}:\d{2}:\d{2},\d{3} --> \d{2}:\d{2}:\d{2},\d{3}$")
LINE_BREAKS = re.compile(r"[ \t]*(?:\r?\n)+[ \t]*")


def classify_line(text: str) -> LineRole:
    """Return the role of a single line. First matching rule wins."""
    if INDEX_LINE.match(text):
        return LineRole.INDEX
    if TIMESTAMP_LINE.match(text):
        return LineRole.TIMESTAMP
    if text == "":
        return LineRole.BLANK
    return LineRole.TEXT


def parse_document(content: str) -> ParsedDocument:
    """
    Split raw SRT content into classified lines.

    Every '\\n'-delimited segment becomes one Line, including the empty
    segment after a trailing newline. Anything that is not an index,
    timestamp or blank line is treated as translatable text, so malformed
    files still parse.

    Args:
        content: Decoded SRT file content

    Returns:
        ParsedDocument with one Line per input line
    """
    lines = [
        Line(position, classify_line(segment), segment)
        for position, segment in enumerate(content.split("\n"))
    ]
    document = ParsedDocument(lines)
    logger.info(f"Lines read: {len(document)}")
    return document


def single_line(text: str) -> str:
    """Collapse embedded line breaks so `text` stays one SRT line."""
    return LINE_BREAKS.sub(" ", text)


def reconstitute(document: ParsedDocument, translations: Mapping[int, str]) -> str:
    """
    Rebuild the file text, substituting translated text lines.

    Text lines without an entry in `translations` keep their original
    text. All other lines are emitted unchanged. Line breaks inside a
    translation are replaced by spaces, so the output always has as many
    lines as the input.
    """
    output = []
    for line in document:
        if line.is_translatable and line.position in translations:
            output.append(single_line(translations[line.position]))
        else:
            output.append(line.text)
    return "\n".join(output)
