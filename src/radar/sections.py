"""
Heading-based section extraction for summarizer output.

The summarization prompt asks for plain-text sections of the form

    SUMMARY: ...

    DIRECTION: ...

This module turns such text back into a label -> text mapping. It is a
best-effort string search, not a grammar: missing headings produce empty
strings, and out-of-order or duplicated headings degrade per field.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Mapping, Pattern


def _heading_pattern(labels: Iterable[str]) -> Pattern[str]:
    # Longest first so a label that prefixes another never wins the alternation.
    alternation = "|".join(
        re.escape(label) for label in sorted(set(labels), key=len, reverse=True)
    )
    # Heading at line start, tolerating markdown emphasis around it.
    return re.compile(
        rf"^[ \t]*[*_#]*[ \t]*(?P<label>{alternation})[*_]*[ \t]*:[*_]*[ \t]*",
        re.MULTILINE,
    )


def extract_sections(text: str, labels: List[str]) -> Dict[str, str]:
    """
    Split `text` into the sections introduced by `labels`.

    Label matching is case-sensitive and only counts at the start of a line
    followed by a colon. A section's content runs until the next known
    heading or the end of the text. When a label appears more than once,
    the first occurrence is used.

    Args:
        text: Free-form text returned by the summarizer
        labels: Exact uppercase headings to look for

    Returns:
        Mapping with every label as a key; missing sections map to "".
    """
    sections = {label: "" for label in labels}
    if not text or not labels:
        return sections

    matches = list(_heading_pattern(labels).finditer(text))
    seen = set()
    for idx, match in enumerate(matches):
        label = match.group("label")
        if label in seen:
            continue
        seen.add(label)
        end = matches[idx + 1].start() if idx + 1 < len(matches) else len(text)
        sections[label] = text[match.end():end].strip()

    return sections


def render_sections(values: Mapping[str, str]) -> str:
    """Render sections in the format the summarization prompt requests."""
    return "\n\n".join(f"{label}: {value}" for label, value in values.items())
