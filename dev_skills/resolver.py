"""
dev_skills.resolver

Turns a user supplied identifier into exactly one document.

Accepted identifier shapes:
- "backend-patterns/controller"   skill document
- "backend-patterns.controller"   same, dotted form
- "backend-patterns"              category overview (index.md)

A skill match always wins over a category overview. Lookups are
case-insensitive. When nothing resolves, `suggest` offers near matches; the
resolver itself never guesses.
"""

from __future__ import annotations

from dataclasses import dataclass

from dev_skills.config import MARKDOWN_SUFFIX, SUGGESTION_LIMIT, get_logger
from dev_skills.store import Document, SkillStore

logger = get_logger("resolver")


@dataclass(frozen=True)
class Suggestion:
    kind: str  # "category" or "skill"
    value: str

    def label(self) -> str:
        if self.kind == "category":
            return f"{self.value} (category)"
        return self.value


def split_identifier(identifier: str) -> tuple[str, str] | None:
    """
    Split an identifier into (category, slug).

    Returns None for bare names and for malformed input (empty parts or more
    than one separator).
    """
    text = identifier.strip()
    if "/" in text:
        parts = text.split("/")
    elif "." in text:
        parts = text.split(".")
    else:
        return None
    if len(parts) != 2 or not all(parts):
        return None
    return parts[0], parts[1]


def _match_name(names: list[str], wanted: str) -> str | None:
    """Exact name first, then the first case-insensitive match."""
    if wanted in names:
        return wanted
    folded = wanted.casefold()
    for name in names:
        if name.casefold() == folded:
            return name
    return None


def _match_category(store: SkillStore, wanted: str) -> str | None:
    entries = store.list_dir()
    if entries is None:
        return None
    return _match_name([e.name for e in entries if e.is_dir], wanted)


def _match_skill_file(store: SkillStore, category: str, slug: str) -> str | None:
    files = store.list_files(category)
    matched = _match_name(files, slug + MARKDOWN_SUFFIX)
    if matched is None or not matched.endswith(MARKDOWN_SUFFIX):
        return None
    return matched[: -len(MARKDOWN_SUFFIX)]


def _resolve_skill(store: SkillStore, category: str, slug: str) -> Document | None:
    document = store.read_document(category, slug)
    if document is not None:
        return document

    actual_category = _match_category(store, category)
    if actual_category is None:
        return None
    actual_slug = _match_skill_file(store, actual_category, slug)
    if actual_slug is None:
        return None
    return store.read_document(actual_category, actual_slug)


def _resolve_overview(store: SkillStore, category: str) -> Document | None:
    document = store.read_overview(category)
    if document is not None:
        return document
    actual_category = _match_category(store, category)
    if actual_category is None or actual_category == category:
        return None
    return store.read_overview(actual_category)


def resolve(store: SkillStore, identifier: str) -> Document | None:
    """
    function_purpose: Resolve an identifier to a skill document or category overview.

    1. "<category>/<slug>" (or "<category>.<slug>") names a skill file.
    2. Otherwise the whole identifier is tried as a category with an index.md.
    3. Otherwise None.
    """
    text = (identifier or "").strip().strip("/")
    if not text:
        return None

    parts = split_identifier(text)
    if parts is not None:
        document = _resolve_skill(store, *parts)
        if document is not None:
            logger.debug("Resolved %r to skill %s", identifier, document.identifier)
            return document

    if "/" not in text:
        document = _resolve_overview(store, text)
        if document is not None:
            logger.debug("Resolved %r to overview %s", identifier, document.identifier)
            return document

    logger.debug("Identifier %r did not resolve", identifier)
    return None


def suggest(
    store: SkillStore, identifier: str, limit: int = SUGGESTION_LIMIT
) -> list[Suggestion]:
    """
    function_purpose: Offer categories and skills whose names contain the failed identifier.

    Case-insensitive substring match against category names, skill identifiers
    and skill display names, in discovery order, capped at `limit`.
    """
    needle = (identifier or "").strip().lower()
    if not needle:
        return []

    suggestions: list[Suggestion] = []
    for category in store.enumerate_categories():
        if needle in category.name.lower():
            suggestions.append(Suggestion("category", category.name))
        for skill in category.skills:
            if needle in skill.identifier.lower() or needle in skill.display_name.lower():
                suggestions.append(Suggestion("skill", skill.identifier))
    return suggestions[:limit]
