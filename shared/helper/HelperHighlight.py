"""Search term highlighting for the OCR text view."""

import re

from pydantic import BaseModel


class TextSegment(BaseModel):
    """A run of text, flagged if it is an occurrence of the highlighted keyword."""

    text: str
    highlighted: bool = False


def highlight_text(text: str, keyword: str | None) -> list[TextSegment]:
    """Split text into plain and highlighted segments.

    Matches are literal and case-insensitive, the same substring semantics the
    document search uses. Concatenating the segment texts yields the input.

    Args:
        text (str): The text to mark up.
        keyword (str | None): The term to highlight. Blank keywords highlight nothing.

    Returns:
        list[TextSegment]: Ordered segments, empty runs omitted.
    """
    if not text:
        return []
    if not keyword or not keyword.strip():
        return [TextSegment(text=text)]

    pattern = re.compile(f"({re.escape(keyword)})", re.IGNORECASE)
    segments: list[TextSegment] = []
    # re.split with a capturing group alternates plain, match, plain, ...
    for index, part in enumerate(pattern.split(text)):
        if not part:
            continue
        segments.append(TextSegment(text=part, highlighted=index % 2 == 1))
    return segments
