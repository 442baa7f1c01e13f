"""
dev_skills.search

Case-insensitive substring search over every skill document.
"""

from __future__ import annotations

from dev_skills.config import get_logger
from dev_skills.store import Document, SkillStore

logger = get_logger("search")

PREVIEW_LINES = 3
PREVIEW_CHARS = 200


def _matches(document: Document, needle: str) -> bool:
    return (
        needle in document.content.lower()
        or needle in document.display_name.lower()
        or needle in document.category.lower()
    )


def search_skills(store: SkillStore, query: str) -> list[Document]:
    """
    function_purpose: Find skills whose content, display name or category contains the query.

    Results keep enumeration order (categories, then skills within a category).
    Category overviews are not searched. An empty or blank query returns [];
    any other query is matched as given, surrounding spaces included.
    """
    results: list[Document] = []
    if not query or not query.strip():
        return results
    needle = query.lower()

    for category in store.enumerate_categories():
        for ref in category.skills:
            slug = ref.identifier.split("/", 1)[1]
            document = store.read_document(category.name, slug)
            if document is not None and _matches(document, needle):
                results.append(document)

    logger.debug("Search %r matched %d skill(s)", query, len(results))
    return results


def preview(content: str, max_lines: int = PREVIEW_LINES, max_chars: int = PREVIEW_CHARS) -> str:
    """First few non-empty, non-heading lines, joined and cut to max_chars, with '...' appended."""
    lines = [
        line for line in content.splitlines() if line.strip() and not line.startswith("#")
    ]
    return " ".join(lines[:max_lines])[:max_chars] + "..."
