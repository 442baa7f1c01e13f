"""
dev_skills.templates

Scaffolding from a category's templates/ directory.

Placeholders use the form {{ variable }}. For a supplied name such as
"userAuth" the following variables are always available:

    name        userAuth
    Name        UserAuth
    NAME        USERAUTH
    name-kebab  user-auth
    name_snake  user_auth
    nameCAMEL   userAuth

Caller supplied variables override these on key collision. Template file
names may contain {{name}} (replaced by the kebab-case name) and may end in
.hbs or .template, which is stripped from the output file name.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from dev_skills.config import TEMPLATES_DIRNAME, get_logger
from dev_skills.store import SkillStore

logger = get_logger("templates")

TEMPLATE_SUFFIXES = (".hbs", ".template")
_PLACEHOLDER_RE = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")
_UPPER_RE = re.compile(r"([A-Z])")


@dataclass(frozen=True)
class TemplateFile:
    filename: str
    content: str


@dataclass(frozen=True)
class ScaffoldedFile:
    filename: str
    content: str


@dataclass
class ScaffoldResult:
    category: str
    name: str
    variables: dict[str, str] = field(default_factory=dict)
    files: list[ScaffoldedFile] = field(default_factory=list)


def load_templates(store: SkillStore, category: str) -> list[TemplateFile]:
    """
    function_purpose: Read every file in <root>/<category>/templates/.

    A missing directory yields []. Files that cannot be read as UTF-8 text are
    skipped.
    """
    templates: list[TemplateFile] = []
    for filename in store.list_files(category, TEMPLATES_DIRNAME):
        content = store.read_file(category, TEMPLATES_DIRNAME, filename)
        if content is None:
            logger.warning("Skipping unreadable template %s/%s", category, filename)
            continue
        templates.append(TemplateFile(filename, content))
    return templates


def _separated(name: str, sep: str) -> str:
    return _UPPER_RE.sub(sep + r"\1", name).lower().removeprefix(sep)


def derive_name_variants(
    name: str, overrides: Mapping[str, str] | None = None
) -> dict[str, str]:
    """Case variants of `name`, merged with `overrides` (overrides win)."""
    variables: dict[str, str] = {
        "name": name,
        "Name": name[:1].upper() + name[1:],
        "NAME": name.upper(),
        "name-kebab": _separated(name, "-"),
        "name_snake": _separated(name, "_"),
        "nameCAMEL": name[:1].lower() + name[1:],
    }
    if overrides:
        variables.update({str(k): str(v) for k, v in overrides.items()})
    return variables


def render(template: str, variables: Mapping[str, str]) -> str:
    """Replace {{ key }} placeholders; unknown placeholders are left as they are."""

    def _substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        if key in variables:
            return variables[key]
        return match.group(0)

    return _PLACEHOLDER_RE.sub(_substitute, template)


def derive_output_filename(template_filename: str, name_kebab: str) -> str:
    """'{{name}}.controller.ts.hbs' -> '<name_kebab>.controller.ts'."""
    filename = template_filename
    for suffix in TEMPLATE_SUFFIXES:
        filename = filename.removesuffix(suffix)
    return filename.replace("{{name}}", name_kebab)


def scaffold(
    store: SkillStore,
    category: str,
    name: str,
    overrides: Mapping[str, str] | None = None,
) -> ScaffoldResult:
    """
    function_purpose: Render every template of a category for the given name.

    Returns a ScaffoldResult with the variables used and the rendered files.
    `files` is empty when the category has no templates.
    """
    variables = derive_name_variants(name, overrides)
    result = ScaffoldResult(category=category, name=name, variables=variables)
    name_kebab = variables.get("name-kebab") or name

    for template in load_templates(store, category):
        result.files.append(
            ScaffoldedFile(
                filename=derive_output_filename(template.filename, name_kebab),
                content=render(template.content, variables),
            )
        )
    logger.debug("Scaffolded %d file(s) for %s/%s", len(result.files), category, name)
    return result
