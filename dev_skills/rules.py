"""
dev_skills.rules

Heuristic checklist extraction from free-form skill markdown.

Skill documents follow no schema, so rules are mined from two places:
- bullet and numbered items under headings such as "## Rules" or "### Conventions"
- bullet lines anywhere that start with a status marker (✅, ❌, ⚠️, MUST, SHOULD, ...)

Pure text in, list of strings out. No I/O happens here.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

TRIGGER_WORDS = ("rule", "standard", "checklist", "must", "requirement", "convention")
STATUS_MARKERS = ("✅", "❌", "⚠️", "MUST", "SHOULD", "SHALL", "REQUIRED")

_TRIGGER = "|".join(TRIGGER_WORDS)
_HEADING_RE = re.compile(r"^#{1,3}\s")
_RULES_HEADING_RE = re.compile(rf"^#{{1,3}}\s.*({_TRIGGER})", re.IGNORECASE)
_TRIGGER_RE = re.compile(_TRIGGER, re.IGNORECASE)
_BULLET_RE = re.compile(r"^\s*[-*]\s+(.+)")
_NUMBERED_RE = re.compile(r"^\d+\.\s+(.+)")
_STATUS_RE = re.compile(
    r"^\s*[-*]\s*(" + "|".join(re.escape(m) for m in STATUS_MARKERS) + ")",
    re.IGNORECASE,
)
_BULLET_PREFIX_RE = re.compile(r"^\s*[-*]\s*")


def _section_items(lines: list[str]) -> list[str]:
    rules: list[str] = []
    in_section = False
    for line in lines:
        if _RULES_HEADING_RE.match(line):
            in_section = True
            continue
        if in_section and _HEADING_RE.match(line) and not _TRIGGER_RE.search(line):
            in_section = False
            continue
        if in_section:
            match = _BULLET_RE.match(line) or _NUMBERED_RE.match(line)
            if match:
                rules.append(match.group(1).strip())
    return rules


def extract_rules(content: str | Iterable[str]) -> list[str]:
    """
    function_purpose: Extract an ordered checklist of rule strings from a skill document.

    Pass 1 collects list items inside rules sections (the heading itself is not
    emitted; a level 1-3 heading without a trigger word ends the section).
    Pass 2 appends status-marker bullets from anywhere in the document, with the
    bullet stripped, unless the trimmed line is already in the result.

    Returns [] when nothing qualifies.
    """
    lines = content.split("\n") if isinstance(content, str) else list(content)
    rules = _section_items(lines)

    for line in lines:
        if _STATUS_RE.match(line) and line.strip() not in rules:
            rules.append(_BULLET_PREFIX_RE.sub("", line, count=1).strip())
    return rules
