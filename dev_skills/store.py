"""
dev_skills.store

Read-only access to the skills library.

Layout of a skills root:

    <root>/
      <category>/
        index.md          optional category overview
        <slug>.md         one skill document per file
        templates/        optional scaffold templates

The directory tree is reached only through a StorageBackend (list entries, read
text) so the same resolution logic runs over the real filesystem or an
in-memory mapping.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import yaml

from dev_skills.config import MARKDOWN_SUFFIX, OVERVIEW_SLUG, get_logger

logger = get_logger("store")

OVERVIEW_FILENAME = OVERVIEW_SLUG + MARKDOWN_SUFFIX
OVERVIEW_LABEL = " (Overview)"
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 120


@dataclass(frozen=True)
class Entry:
    """One child of a directory: its name and whether it is a directory."""

    name: str
    is_dir: bool


@dataclass(frozen=True)
class SkillRef:
    identifier: str
    display_name: str


@dataclass(frozen=True)
class Category:
    name: str
    description: str = ""
    has_overview: bool = False
    skills: tuple[SkillRef, ...] = ()


@dataclass(frozen=True)
class Document:
    """A skill document or category overview, read fresh for one request."""

    identifier: str
    display_name: str
    category: str
    content: str
    source_path: str = field(default="", repr=False, compare=False)
    is_overview: bool = False


class StorageBackend(Protocol):
    """Narrow read-only view of the directory tree under the skills root."""

    def list_entries(self, *parts: str) -> list[Entry]:
        """List children of the directory at parts; raise OSError if it cannot be listed."""
        ...

    def read_text(self, *parts: str) -> str | None:
        """Return a file's text, or None when it does not exist or cannot be read."""
        ...

    def describe(self, *parts: str) -> str:
        """Human-readable location of parts, for logs and source paths."""
        ...


class FilesystemBackend:
    """StorageBackend over a directory on disk. Entries are sorted by name."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _path(self, *parts: str) -> Path:
        return self.root.joinpath(*parts)

    def list_entries(self, *parts: str) -> list[Entry]:
        path = self._path(*parts)
        children = sorted(path.iterdir(), key=lambda p: p.name)
        return [Entry(p.name, p.is_dir()) for p in children]

    def read_text(self, *parts: str) -> str | None:
        path = self._path(*parts)
        if not path.is_file():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            logger.warning("Skipping non UTF-8 file %s", path)
        except OSError as exc:
            logger.error("Failed reading %s: %s", path, exc)
        return None

    def describe(self, *parts: str) -> str:
        return str(self._path(*parts))


class InMemoryBackend:
    """
    StorageBackend over a mapping of POSIX relative paths to file text.

    Directories are implied by the paths, e.g. {"backend/controller.md": "..."}.
    Entries keep the mapping's insertion order.
    """

    def __init__(self, files: Mapping[str, str], root: str = "memory:") -> None:
        self.files: dict[str, str] = {k.strip("/"): v for k, v in files.items()}
        self.root = root

    def list_entries(self, *parts: str) -> list[Entry]:
        prefix = "/".join(parts) + "/" if parts else ""
        seen: dict[str, bool] = {}
        for key in self.files:
            if not key.startswith(prefix):
                continue
            head, sep, _ = key[len(prefix) :].partition("/")
            if head:
                seen[head] = seen.get(head, False) or bool(sep)
        if parts and not seen:
            raise FileNotFoundError(f"no such directory: {self.describe(*parts)}")
        return [Entry(name, is_dir) for name, is_dir in seen.items()]

    def read_text(self, *parts: str) -> str | None:
        return self.files.get("/".join(parts))

    def describe(self, *parts: str) -> str:
        return "/".join((self.root, *parts))


def display_name_for(slug: str) -> str:
    """'rest-endpoint' -> 'Rest Endpoint'."""
    return " ".join(word[:1].upper() + word[1:] for word in slug.split("-"))


def split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """
    function_purpose: Split optional YAML frontmatter delimited by '---' lines from the markdown body.

    Documents without frontmatter, or with frontmatter that does not parse to a
    mapping, come back as ({}, text).
    """
    lines = text.splitlines(keepends=False)
    if not lines or lines[0].strip() != "---":
        return {}, text

    idx = 1
    while idx < len(lines) and lines[idx].strip() != "---":
        idx += 1
    if idx >= len(lines):
        return {}, text

    try:
        fm = yaml.safe_load("\n".join(lines[1:idx])) or {}
    except yaml.YAMLError as exc:
        logger.warning("Ignoring malformed frontmatter: %s", exc)
        return {}, text
    if not isinstance(fm, dict):
        return {}, text
    return fm, "\n".join(lines[idx + 1 :])


def extract_description(content: str) -> str:
    """
    function_purpose: Pull a short category description out of an overview document.

    A string 'description' in YAML frontmatter wins. Otherwise blank lines,
    headings and code fences are skipped; a block-quote line is returned as
    soon as it is seen, else the first plain line longer than 10 characters is
    used, truncated to 120 characters.
    """
    fm, body = split_frontmatter(content)
    description = fm.get("description")
    if isinstance(description, str) and description.strip():
        return description.strip()

    for line in body.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#") or trimmed.startswith("```"):
            continue
        if trimmed.startswith(">"):
            return trimmed[1:].strip()
        if len(trimmed) > DESCRIPTION_MIN_LENGTH:
            if len(trimmed) > DESCRIPTION_MAX_LENGTH:
                return trimmed[:DESCRIPTION_MAX_LENGTH] + "..."
            return trimmed
    return ""


def is_safe_segment(segment: str) -> bool:
    """A single path component that cannot escape the skills root."""
    return bool(segment) and segment not in (".", "..") and not any(
        sep in segment for sep in ("/", "\\", "\x00")
    )


class SkillStore:
    """
    function_purpose: Single source of truth for where skill documents live and how to enumerate them.

    The root is passed in explicitly; nothing here reads process state. Every
    call reads from the backend again, nothing is cached between calls.
    Storage failures are logged and reported as empty results.
    """

    def __init__(self, root: Path | str, backend: StorageBackend | None = None) -> None:
        self.root = Path(root) if backend is None else root
        self.backend: StorageBackend = backend or FilesystemBackend(Path(root))

    @classmethod
    def from_mapping(cls, files: Mapping[str, str]) -> SkillStore:
        """Build a store over in-memory files, keyed by '<category>/<file>' paths."""
        backend = InMemoryBackend(files)
        return cls(backend.root, backend=backend)

    def __repr__(self) -> str:
        return f"SkillStore(root={str(self.root)!r})"

    # --- low level listing ---
    def list_dir(self, *parts: str) -> list[Entry] | None:
        """Entries of a directory under the root, or None if it cannot be listed."""
        if not all(is_safe_segment(p) for p in parts):
            return None
        try:
            return self.backend.list_entries(*parts)
        except OSError as exc:
            logger.debug("Cannot list %s: %s", self.backend.describe(*parts), exc)
            return None

    def read_file(self, *parts: str) -> str | None:
        if not parts or not all(is_safe_segment(p) for p in parts):
            return None
        return self.backend.read_text(*parts)

    def list_files(self, *parts: str) -> list[str]:
        """Names of the plain files directly inside a directory; [] when absent."""
        entries = self.list_dir(*parts)
        if entries is None:
            return []
        return [e.name for e in entries if not e.is_dir]

    # --- categories ---
    def enumerate_categories(self) -> list[Category]:
        """
        function_purpose: List every category that holds at least one skill or an overview.

        Non-directory entries at the root are ignored. An unreadable root is
        logged and yields an empty list; an unreadable category is skipped.
        """
        try:
            entries = self.backend.list_entries()
        except OSError as exc:
            logger.error("Error listing skills from %s: %s", self.backend.describe(), exc)
            return []

        categories: list[Category] = []
        for entry in entries:
            if not entry.is_dir:
                continue
            category = self._load_category(entry.name)
            if category is not None:
                categories.append(category)
        return categories

    def _load_category(self, name: str) -> Category | None:
        try:
            entries = self.backend.list_entries(name)
        except OSError as exc:
            logger.warning("Skipping category %s: %s", name, exc)
            return None

        markdown = [
            e.name for e in entries if not e.is_dir and e.name.endswith(MARKDOWN_SUFFIX)
        ]
        has_overview = OVERVIEW_FILENAME in markdown
        description = ""
        if has_overview:
            text = self.backend.read_text(name, OVERVIEW_FILENAME)
            description = extract_description(text) if text else ""

        skills = tuple(
            SkillRef(f"{name}/{slug}", display_name_for(slug))
            for slug in (f[: -len(MARKDOWN_SUFFIX)] for f in markdown if f != OVERVIEW_FILENAME)
        )
        if not skills and not has_overview:
            return None
        return Category(
            name=name,
            description=description,
            has_overview=has_overview,
            skills=skills,
        )

    def category_names(self) -> list[str]:
        return [c.name for c in self.enumerate_categories()]

    def all_skill_ids(self) -> list[str]:
        return [s.identifier for c in self.enumerate_categories() for s in c.skills]

    # --- documents ---
    def read_document(self, category: str, slug: str) -> Document | None:
        """Read '<category>/<slug>.md' by exact path; None when it is absent."""
        if slug == OVERVIEW_SLUG:
            return self.read_overview(category)
        content = self.read_file(category, slug + MARKDOWN_SUFFIX)
        if content is None:
            return None
        return Document(
            identifier=f"{category}/{slug}",
            display_name=display_name_for(slug),
            category=category,
            content=content,
            source_path=self.backend.describe(category, slug + MARKDOWN_SUFFIX),
        )

    def read_overview(self, category: str) -> Document | None:
        """Read a category's index.md as an overview document."""
        content = self.read_file(category, OVERVIEW_FILENAME)
        if content is None:
            return None
        return Document(
            identifier=f"{category}/{OVERVIEW_SLUG}",
            display_name=display_name_for(category) + OVERVIEW_LABEL,
            category=category,
            content=content,
            source_path=self.backend.describe(category, OVERVIEW_FILENAME),
            is_overview=True,
        )
