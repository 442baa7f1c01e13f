"""
dev_skills: FastMCP stdio server exposing a library of markdown development skills.

Skills are markdown pattern guides grouped into category folders. This package
resolves, searches, scaffolds and checks against them for MCP-aware clients.
"""

__version__: str = "1.0.0"


def version() -> str:
    return __version__


__all__: list[str] = ["__version__", "version"]
