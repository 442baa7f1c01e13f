"""
dev_skills.server

FastMCP stdio server exposing a library of markdown development skills as MCP
tools for agents to discover, read, scaffold from, and check code against.

Server-level documentation:
- Purpose: Make skills in the `skills/` directory programmatically accessible to MCP-aware clients.
- Why use it:
  * Agents can list skill categories with descriptions
  * Fetch a skill document or a category overview by id
  * Search across skills by keyword
  * Render a category's templates into ready-to-save files
  * Turn a skill's rules into a review checklist
- Transport: STDIO by default (ideal for clients that spawn the server process)
- Logging: stderr + rotating file logs

Skills layout:
  <skills_dir>/<category>/index.md        category overview (optional)
  <skills_dir>/<category>/<slug>.md       skill document, id "<category>/<slug>"
  <skills_dir>/<category>/templates/*     scaffold templates (optional)

Environment (optional):
- SKILLS_DIR: override path to the skills directory (default: bundled dev_skills/skills)
- LOG_FILE: override log file path (default: ~/.dev-skills/logs/dev_skills_server.log)
- LOG_LEVEL: logging level (default: INFO)

Usage:
- As a script:
  python -m dev_skills                          # starts stdio server
  python -m dev_skills --skills-dir ./skills    # serve another skills directory
  python -m dev_skills --help                   # CLI for inspection without starting server

- As a module within MCP client config (stdio):
  command: python
  args: ["-m", "dev_skills"]
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from fastmcp import FastMCP

from dev_skills.config import (
    SERVER_NAME,
    SUGGESTION_LIMIT,
    TEMPLATES_DIRNAME,
    configure_logging,
    get_logger,
    resolve_skills_dir,
)
from dev_skills.resolver import resolve, suggest
from dev_skills.rules import extract_rules
from dev_skills.search import preview, search_skills
from dev_skills.store import SkillStore
from dev_skills.templates import scaffold as scaffold_templates

logger = get_logger("server")

# Command-line arguments relevant to root resolution, set by cli_main.
# None means the process arguments (sys.argv) are used.
_root_argv: list[str] | None = None


def _resolve_store() -> SkillStore:
    """
    function_purpose: Build a store over the configured skills directory.

    Resolved on every call; nothing about the library is cached between requests.
    """
    return SkillStore(resolve_skills_dir(argv=_root_argv))


def _server_description() -> str:
    """
    function_purpose: Provide a server-level description that clients can display.
    """
    return (
        "dev-skills MCP Server: exposes markdown development skills (pattern guides) grouped by "
        "category as MCP tools. Use it to list, read and search skills, scaffold files from "
        "category templates, and build review checklists from a skill's rules."
    )


# --- Response formatting ---
def format_skill_list(store: SkillStore, category: str | None = None) -> str:
    """
    function_purpose: Render the skill catalogue, optionally limited to one category.

    The category filter is an exact, case-insensitive name comparison.
    """
    categories = store.enumerate_categories()
    if not categories:
        return (
            "No skills found. Add .md files to <skills_dir>/<category>/ directories "
            f"(skills_dir: {store.root})."
        )

    filtered = (
        [c for c in categories if c.name.lower() == category.strip().lower()]
        if category
        else categories
    )
    if not filtered:
        available = ", ".join(c.name for c in categories)
        return f'Category "{category}" not found. Available categories: {available}'

    lines = ["# Available Development Skills", ""]
    for cat in filtered:
        lines.append(f"## {cat.name}")
        if cat.description:
            lines.append(f"_{cat.description}_")
            lines.append("")
        if cat.has_overview:
            lines.append(f'- **Overview** → `get_skill("{cat.name}")`')
        for skill in cat.skills:
            lines.append(f'- **{skill.display_name}** → `get_skill("{skill.identifier}")`')
        lines.append("")

    lines.append("---")
    lines.append("Use `get_skill` with the skill ID to read the full skill document.")
    return "\n".join(lines)


def _format_not_found(store: SkillStore, identifier: str) -> str:
    text = f'Skill "{identifier}" not found.'
    suggestions = suggest(store, identifier, limit=SUGGESTION_LIMIT)
    if suggestions:
        listed = "\n".join(f"- {s.label()}" for s in suggestions)
        return f"{text}\n\nDid you mean:\n{listed}"
    available = ", ".join(store.category_names())
    return f"{text}\n\nAvailable categories: {available}"


def _format_search(store: SkillStore, query: str) -> str:
    results = search_skills(store, query)
    if not results:
        return (
            f'No skills found matching "{query}". '
            "Use list_skills to see all available skills."
        )

    lines = [
        f'# Search Results for "{query}"',
        "",
        f"Found {len(results)} skill(s):",
        "",
    ]
    for document in results:
        lines.append(f"### {document.display_name} (`{document.identifier}`)")
        lines.append(preview(document.content))
        lines.append("")
    lines.append("---")
    lines.append("Use `get_skill` with a specific ID to read the full skill document.")
    return "\n".join(lines)


def format_get_skill(
    store: SkillStore, id: str | None = None, search: str | None = None
) -> str:
    """
    function_purpose: Fetch one document by id, or search by keyword.

    `id` takes precedence when both are supplied. A failed lookup yields
    suggestions (or the category list); neither argument yields usage help.
    """
    if id and id.strip():
        document = resolve(store, id)
        if document is None:
            return _format_not_found(store, id)
        return document.content

    if search and search.strip():
        return _format_search(store, search)

    return (
        "Please provide either:\n"
        '- `id`: skill ID like "backend-patterns/controller" or category name like "backend-patterns"\n'
        "- `search`: keyword to search across all skills"
    )


def format_standards_check(
    store: SkillStore,
    skill_id: str,
    code: str | None = None,
    description: str | None = None,
) -> str:
    """
    function_purpose: Build a review checklist from a skill's rules and echo the submitted work.
    """
    document = resolve(store, skill_id)
    if document is None:
        listed = "\n".join(f"- {s}" for s in store.all_skill_ids())
        return f'Skill "{skill_id}" not found.\n\nAvailable skills:\n{listed}'

    rules = extract_rules(document.content)
    lines = [
        f"# Standards Check: {document.display_name}",
        f"**Skill:** {document.identifier}",
        "",
    ]

    if not rules:
        lines.extend(
            [
                "No explicit rules/standards section found in this skill document.",
                "",
                "The skill document may still contain useful patterns and examples.",
                "Consider adding a '## Rules' or '## Standards' section to the skill.",
            ]
        )
    else:
        lines.append(f"Found **{len(rules)}** rules/standards to check against:")
        lines.append("")
        lines.append("## Checklist")
        lines.append("")
        lines.extend(f"- [ ] {rule}" for rule in rules)
        lines.append("")

    if code:
        lines.extend(["## Code Provided for Review", "```", code, "```", ""])

    if description:
        lines.extend(["## Implementation Description", description, ""])

    lines.append("---")
    lines.append("Review the checklist above against the provided code/description.")
    lines.append("The AI assistant should verify each rule and report compliance.")
    return "\n".join(lines)


def format_scaffold(
    store: SkillStore,
    category: str,
    name: str,
    variables: Mapping[str, str] | None = None,
) -> str:
    """
    function_purpose: Render a category's templates for `name` as copyable file blocks.
    """
    result = scaffold_templates(store, category, name, variables)

    if not result.files:
        available = ", ".join(store.category_names())
        return (
            f'No templates found for category "{category}".\n\n'
            f"Available categories: {available}\n\n"
            f"Note: Templates should be placed in <skills_dir>/{category}/{TEMPLATES_DIRNAME}/"
        )

    lines = [
        f'# Scaffolded Files for "{name}" ({category})',
        "",
        f"Generated {len(result.files)} file(s) with variables:",
        "```json",
        json.dumps(result.variables, indent=2, ensure_ascii=False),
        "```",
        "",
    ]
    for generated in result.files:
        lines.extend([f"## {generated.filename}", "```", generated.content, "```", ""])

    lines.append("---")
    lines.append("Copy these files into your project and customize as needed.")
    return "\n".join(lines)


# --- FastMCP server and tools ---
mcp = FastMCP(
    SERVER_NAME,
    instructions=(
        "dev-skills MCP Server\n"
        "\n"
        "Purpose:\n"
        "- Give assistants specialized development expertise from markdown skill documents grouped\n"
        "  into categories (e.g. backend-patterns, database-patterns).\n"
        "\n"
        "Identifiers:\n"
        "- '<category>/<skill>' addresses one skill, e.g. 'backend-patterns/controller'\n"
        "- '<category>' alone returns the category overview (index.md) when one exists\n"
        "\n"
        "Exposed tools:\n"
        "- skill_server_info(): server name, description, skills_dir, transport\n"
        "- list_skills(category?): catalogue of skills grouped by category\n"
        "- get_skill(id? | search?): a skill document, a category overview, or keyword search results\n"
        "- scaffold(category, name, variables?): render a category's templates for a component name\n"
        "- check_standards(skill_id, code?, description?): checklist of a skill's rules for review\n"
        "\n"
        "Environment configuration:\n"
        "- SKILLS_DIR : override skills directory (default: bundled dev_skills/skills)\n"
        "- LOG_FILE   : override rotating log file path\n"
    ),
)


@mcp.tool
def skill_server_info() -> dict[str, Any]:
    """
    function_purpose: Return server-level documentation including purpose and usage.

    Returns:
    - name: str          Server name
    - description: str   High-level description of server purpose and capabilities
    - skills_dir: str    Absolute path to the skills directory in use
    - transport: str     Transport used by the server (e.g., "stdio")
    """
    return {
        "name": SERVER_NAME,
        "description": _server_description(),
        "skills_dir": str(_resolve_store().root),
        "transport": "stdio",
    }


@mcp.tool
def list_skills(category: str | None = None) -> str:
    """
    List all available development skills organized by category.

    Args:
    - category: str   Optional category name filter (e.g. 'backend-patterns', 'database-patterns')

    Returns a markdown catalogue; each skill line shows the id to pass to get_skill.
    """
    logger.info("list_skills category=%s", category)
    return format_skill_list(_resolve_store(), category)


@mcp.tool
def get_skill(id: str | None = None, search: str | None = None) -> str:
    """
    Retrieve a development skill document.

    Pass an id like 'backend-patterns/controller' for a specific skill, or
    'backend-patterns' for the category overview (index.md). Use 'search' to
    find skills by keyword (e.g. 'authentication', 'prisma', 'docker').
    """
    logger.info("get_skill id=%s search=%s", id, search)
    return format_get_skill(_resolve_store(), id=id, search=search)


@mcp.tool
def scaffold(category: str, name: str, variables: dict[str, str] | None = None) -> str:
    """
    Generate project files from a category's templates.

    Args:
    - category: str              Skill category to scaffold from (e.g. 'backend-patterns')
    - name: str                  Name for the generated component (e.g. 'user-auth', 'PaymentForm')
    - variables: dict[str, str]  Extra template variables, e.g. {"port": "3001"}; these override
                                 the derived name variants (name, Name, NAME, name-kebab, name_snake, nameCAMEL)

    Returns rendered files you can write into your project.
    """
    logger.info("scaffold category=%s name=%s", category, name)
    return format_scaffold(_resolve_store(), category, name, variables)


@mcp.tool
def check_standards(
    skill_id: str, code: str | None = None, description: str | None = None
) -> str:
    """
    Check code or project structure against the rules defined in a skill.

    Args:
    - skill_id: str      Skill whose rules to check against (e.g. 'backend-patterns/controller')
    - code: str          Code to validate against the skill's standards
    - description: str   Description of what was built, for structural review
    """
    logger.info("check_standards skill_id=%s", skill_id)
    return format_standards_check(_resolve_store(), skill_id, code, description)


# --- Entry points ---
def run() -> None:
    """
    function_purpose: Entry point to start the MCP stdio server.

    - Configures logging
    - Runs FastMCP stdio server
    """
    logger = configure_logging()
    logger.info("Server starting with skills_dir=%s", str(_resolve_store().root))
    mcp.run()  # stdio transport by default


def _parse_variables(pairs: list[str]) -> dict[str, str]:
    variables: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"expected KEY=VALUE, got {pair!r}")
        variables[key] = value
    return variables


def cli_main(argv: list[str] | None = None) -> None:
    """
    function_purpose: CLI for inspecting skills without starting the MCP server.

    Usage:
      python -m dev_skills --list [CATEGORY]
      python -m dev_skills --get <ID>
      python -m dev_skills --search "<QUERY>"
      python -m dev_skills --check <SKILL_ID> [--code-file PATH]
      python -m dev_skills --scaffold <CATEGORY> <NAME> [--var KEY=VALUE ...]
      python -m dev_skills [--skills-dir PATH] [--serve]
    """
    import argparse

    parser = argparse.ArgumentParser(
        prog="dev_skills",
        description="Inspect markdown development skills or start the stdio MCP server.",
    )
    parser.add_argument(
        "--skills-dir",
        metavar="PATH",
        help="Skills directory (SKILLS_DIR environment variable takes precedence)",
    )
    parser.add_argument(
        "--list",
        nargs="?",
        const="",
        metavar="CATEGORY",
        help="List skills, optionally for one category, and exit",
    )
    parser.add_argument("--get", metavar="ID", help="Print a skill or category overview")
    parser.add_argument("--search", metavar="QUERY", help="Search skills by keyword")
    parser.add_argument(
        "--check", metavar="SKILL_ID", help="Print the standards checklist for a skill"
    )
    parser.add_argument(
        "--code-file", metavar="PATH", help="File whose content is echoed with --check"
    )
    parser.add_argument(
        "--scaffold",
        nargs=2,
        metavar=("CATEGORY", "NAME"),
        help="Render a category's templates for NAME",
    )
    parser.add_argument(
        "--var",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Extra template variable for --scaffold (repeatable)",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Start MCP stdio server (default when no flags used)",
    )

    args = parser.parse_args(argv)

    global _root_argv
    _root_argv = ["--skills-dir", args.skills_dir] if args.skills_dir else []

    logger = configure_logging()
    store = _resolve_store()

    if args.list is not None:
        logger.info("Listing skills...")
        print(format_skill_list(store, args.list or None))
        return

    if args.get:
        logger.info("Get skill: %s", args.get)
        print(format_get_skill(store, id=args.get))
        return

    if args.search:
        logger.info("Search query: %s", args.search)
        print(format_get_skill(store, search=args.search))
        return

    if args.check:
        logger.info("Standards check for skill: %s", args.check)
        code = None
        if args.code_file:
            from pathlib import Path

            try:
                code = Path(args.code_file).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                parser.error(f"cannot read --code-file {args.code_file}: {exc}")
        print(format_standards_check(store, args.check, code=code))
        return

    if args.scaffold:
        category, name = args.scaffold
        logger.info("Scaffold: category=%s name=%s", category, name)
        try:
            variables = _parse_variables(args.var)
        except ValueError as exc:
            parser.error(str(exc))
        print(format_scaffold(store, category, name, variables))
        return

    # Default: start server
    run()


if __name__ == "__main__":
    cli_main()
