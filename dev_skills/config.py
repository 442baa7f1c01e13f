"""
dev_skills.config

Paths, constants, skills root resolution and logging setup.

Environment (optional):
- SKILLS_DIR: override path to the skills directory (default: bundled dev_skills/skills)
- LOG_FILE: override log file path (default: ~/.dev-skills/logs/dev_skills_server.log)
- LOG_LEVEL: logging level name (default: INFO)

Command line (optional):
- --skills-dir PATH: override path to the skills directory when SKILLS_DIR is unset
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping, Sequence
from logging.handlers import RotatingFileHandler
from pathlib import Path


# --- Paths & constants ---
PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_SKILLS_DIR = PACKAGE_DIR / "skills"
DEFAULT_LOG_DIR = Path.home() / ".dev-skills" / "logs"
DEFAULT_LOG_FILE = DEFAULT_LOG_DIR / "dev_skills_server.log"
SERVER_NAME = "dev-skills"

SKILLS_DIR_ENV = "SKILLS_DIR"
SKILLS_DIR_FLAG = "--skills-dir"
TEMPLATES_DIRNAME = "templates"
OVERVIEW_SLUG = "index"
MARKDOWN_SUFFIX = ".md"
SUGGESTION_LIMIT = 10

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s]: %(message)s"


def _flag_value(argv: Sequence[str], flag: str) -> str | None:
    """Return the value following `flag` (or given as `flag=value`) in argv."""
    for idx, arg in enumerate(argv):
        if arg == flag:
            if idx + 1 < len(argv) and argv[idx + 1]:
                return argv[idx + 1]
            return None
        if arg.startswith(flag + "="):
            value = arg[len(flag) + 1 :]
            return value or None
    return None


def resolve_skills_dir(
    environ: Mapping[str, str] | None = None,
    argv: Sequence[str] | None = None,
    default: Path | None = None,
) -> Path:
    """
    function_purpose: Resolve the skills root directory as an absolute path.

    Resolution order:
    1. SKILLS_DIR environment variable
    2. --skills-dir command-line flag
    3. bundled dev_skills/skills package data

    The directory is not required to exist; an absent root simply holds no skills.
    """
    env = os.environ if environ is None else environ
    args = sys.argv[1:] if argv is None else argv

    env_dir = (env.get(SKILLS_DIR_ENV) or "").strip()
    if env_dir:
        return Path(env_dir).expanduser().resolve()

    flag_dir = _flag_value(args, SKILLS_DIR_FLAG)
    if flag_dir:
        return Path(flag_dir).expanduser().resolve()

    return (default or DEFAULT_SKILLS_DIR).resolve()


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the server logger, or a child of it for a module."""
    base = logging.getLogger(SERVER_NAME)
    return base.getChild(name) if name else base


# --- Logging setup ---
def configure_logging(log_file: Path | None = None) -> logging.Logger:
    """
    function_purpose: Configure application-wide logging to both stderr and a rotating file.

    - Creates the log directory if needed.
    - Console output goes to stderr so the stdio transport on stdout stays clean.
    - Safe to call more than once; handlers are only attached the first time.
    """
    logger = get_logger()
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)

    if logger.handlers:
        return logger

    if log_file is None:
        log_file_env = os.environ.get("LOG_FILE")
        log_file = Path(log_file_env) if log_file_env else DEFAULT_LOG_FILE

    formatter = logging.Formatter(_LOG_FORMAT)

    # Console handler
    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(level)
    sh.setFormatter(formatter)
    logger.addHandler(sh)

    # Rotating file handler (5 files, 5MB each)
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=5)
    except OSError as exc:
        logger.warning("File logging disabled, cannot open %s: %s", log_file, exc)
    else:
        fh.setLevel(level)
        fh.setFormatter(formatter)
        logger.addHandler(fh)
        logger.info("Logging initialized. File: %s", str(log_file))

    return logger
