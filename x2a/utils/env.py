"""Dotenv support for running the orchestrator outside a cluster.

The file holds ``KEY=value`` lines. Blank lines and ``#`` comments are skipped, an
``export`` prefix is allowed, and values may be wrapped in matching quotes. Unquoted
values lose a trailing `` # comment``. Values already present in the process
environment always win, so a deployment never gets shadowed by a stray file.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable, Mapping, MutableMapping
from pathlib import Path

logger = logging.getLogger(__name__)

ENV_FILE_VARIABLE = "X2A_ENV_FILE"
_KEY_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def env_file_path(environ: Mapping[str, str] | None = None) -> Path:
  """Return the dotenv file to read: ``X2A_ENV_FILE`` when set, else ``.env`` at the repo root."""
  environ = os.environ if environ is None else environ
  configured = (environ.get(ENV_FILE_VARIABLE) or "").strip()
  if configured:
    return Path(configured).expanduser()
  return Path(__file__).resolve().parents[2] / ".env"


def _unquote(value: str) -> str:
  if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
    return value[1:-1]
  comment = value.find(" #")
  if comment != -1:
    value = value[:comment].rstrip()
  return value


def parse_env_lines(lines: Iterable[str], *, source: str = "<env>") -> dict[str, str]:
  """Parse dotenv lines into a dict. Later assignments win; malformed lines are logged and skipped."""
  values: dict[str, str] = {}
  for number, raw_line in enumerate(lines, start=1):
    line = raw_line.strip()
    if not line or line.startswith("#"):
      continue
    if line.startswith("export "):
      line = line[len("export ") :].lstrip()

    key, separator, value = line.partition("=")
    key = key.strip()
    if not separator or not _KEY_PATTERN.fullmatch(key):
      logger.warning("Ignoring malformed line %d in %s", number, source)
      continue
    values[key] = _unquote(value.strip())
  return values


def apply_env_file(path: Path, environ: MutableMapping[str, str] | None = None) -> tuple[str, ...]:
  """Copy values from ``path`` into ``environ`` for keys it does not define yet.

  Returns the keys that were set. A missing file is not an error.
  """
  environ = os.environ if environ is None else environ
  if not path.is_file():
    return ()

  parsed = parse_env_lines(path.read_text(encoding="utf-8").splitlines(), source=str(path))
  applied = tuple(key for key in parsed if key not in environ)
  for key in applied:
    environ[key] = parsed[key]

  if applied:
    logger.debug("Loaded %d setting(s) from %s", len(applied), path)
  return applied
