from __future__ import annotations

from pathlib import Path

import pytest

from dev_skills.store import SkillStore

CONTROLLER_MD = """# Controller

Controllers translate requests into service calls.

## Rules

- Keep one controller per resource
- Validate input with DTOs
- Never access the database directly
"""

SERVICE_MD = """# Service

Services own the business logic.

- MUST keep services free of request objects

## Conventions

1. Name services after the domain
2. Inject repositories through the constructor
"""

PRISMA_MD = """# Prisma Schema

Models are declared in schema.prisma and accessed with the Prisma client.
"""

POSTGRES_MD = """# Postgres Tuning

Vacuum and index maintenance for large tables.
"""

DATABASE_INDEX_MD = """# Database Patterns

> Relational schema and migration conventions.

More text here.
"""

STORE_FILES: dict[str, str] = {
    "backend-patterns/controller.md": CONTROLLER_MD,
    "backend-patterns/service.md": SERVICE_MD,
    "backend-patterns/templates/README.md.template": "# {{name}}\n",
    "backend-patterns/templates/{{name}}.controller.ts.hbs": (
        "export class {{Name}}Controller {} // {{ name-kebab }} on {{port}}\n"
    ),
    "database-patterns/index.md": DATABASE_INDEX_MD,
    "database-patterns/postgres-tuning.md": POSTGRES_MD,
    "database-patterns/prisma-schema.md": PRISMA_MD,
}


def write_store(root: Path, files: dict[str, str]) -> Path:
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def memory_store() -> SkillStore:
    return SkillStore.from_mapping(STORE_FILES)


@pytest.fixture
def skills_root(tmp_path: Path) -> Path:
    return write_store(tmp_path / "skills", STORE_FILES)


@pytest.fixture
def fs_store(skills_root: Path) -> SkillStore:
    return SkillStore(skills_root)


@pytest.fixture(params=["memory", "filesystem"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> SkillStore:
    """The same library served from memory and from disk."""
    if request.param == "memory":
        return SkillStore.from_mapping(STORE_FILES)
    return SkillStore(write_store(tmp_path / "skills", STORE_FILES))
