"""
Package entry point for launching the dev_skills server.

This allows running:
  - python -m dev_skills            -> invokes dev_skills.server CLI
  - python -m dev_skills.server     -> also available directly via the server module

The entry point delegates to dev_skills.server.cli_main() which supports both
CLI inspection modes and starting the stdio MCP server.
"""

from dev_skills.server import cli_main


def main() -> None:
    cli_main()


if __name__ == "__main__":
    main()
