import re
import logging
from typing import Iterable, List

logger = logging.getLogger(__name__)

# A line holding nothing but a link
URL_LINE_PATTERN = re.compile(r'^(?:https?://|www\.)\S+$', re.IGNORECASE)


def join_units(units: Iterable[str]) -> str:
    """Join text units with a blank line between them"""
    return "\n\n".join(units)


def is_noise_line(line: str) -> bool:
    """True for bare URLs and lines without any letter or digit"""
    if URL_LINE_PATTERN.match(line):
        return True
    return not any(ch.isalnum() for ch in line)


def clean_lines(text: str) -> List[str]:
    """Trim lines, then drop empty, duplicate and noise lines (first occurrence wins)"""
    seen = set()
    lines = []

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line in seen:
            continue
        seen.add(line)

        if is_noise_line(line):
            continue
        lines.append(line)

    return lines


def clean_text(text: str) -> str:
    """Nettoie un texte extrait ligne par ligne"""
    if not text:
        return ""

    lines = clean_lines(text)
    logger.debug(f"Cleaning kept {len(lines)} lines")
    return "\n".join(lines)
