from __future__ import annotations

from pathlib import Path

from dev_skills.search import preview, search_skills
from dev_skills.store import SkillStore


def _ids(store: SkillStore, query: str) -> list[str]:
    return [d.identifier for d in search_skills(store, query)]


def test_search_matches_content_case_insensitively(store: SkillStore) -> None:
    assert _ids(store, "PRISMA") == ["database-patterns/prisma-schema"]


def test_search_excludes_unrelated_documents(store: SkillStore) -> None:
    ids = _ids(store, "prisma")
    assert "database-patterns/postgres-tuning" not in ids
    for doc in search_skills(store, "prisma"):
        haystack = " ".join([doc.content, doc.display_name, doc.category]).lower()
        assert "prisma" in haystack


def test_search_matches_category_name(store: SkillStore) -> None:
    assert _ids(store, "backend") == [
        "backend-patterns/controller",
        "backend-patterns/service",
    ]


def test_search_matches_display_name(tmp_path: Path) -> None:
    root = tmp_path / "skills"
    (root / "web").mkdir(parents=True)
    (root / "web" / "rest-endpoint.md").write_text("nothing relevant", encoding="utf-8")
    assert _ids(SkillStore(root), "rest endpoint") == ["web/rest-endpoint"]


def test_search_keeps_enumeration_order(store: SkillStore) -> None:
    assert _ids(store, "e") == [
        "backend-patterns/controller",
        "backend-patterns/service",
        "database-patterns/postgres-tuning",
        "database-patterns/prisma-schema",
    ]


def test_search_returns_full_documents(store: SkillStore) -> None:
    (doc,) = search_skills(store, "schema.prisma")
    assert doc.content.startswith("# Prisma Schema")


def test_search_skips_overviews(store: SkillStore) -> None:
    assert "database-patterns/index" not in _ids(store, "migration conventions")
    assert _ids(store, "migration conventions") == []


def test_empty_query_returns_nothing(store: SkillStore) -> None:
    assert search_skills(store, "") == []
    assert search_skills(store, "   ") == []
    assert search_skills(store, "no-such-term-anywhere") == []


def test_query_whitespace_is_part_of_the_match() -> None:
    store = SkillStore.from_mapping(
        {
            "web/a.md": "the other thing",
            "web/b.md": "read the docs",
        }
    )
    assert _ids(store, " the ") == ["web/b"]
    assert _ids(store, "the") == ["web/a", "web/b"]


def test_preview_uses_first_three_body_lines() -> None:
    content = "# Title\n\nline one\n## Sub\nline two\n\nline three\nline four\n"
    assert preview(content) == "line one line two line three..."


def test_preview_is_cut_to_200_characters() -> None:
    content = "# T\n" + "a" * 300
    assert preview(content) == "a" * 200 + "..."
