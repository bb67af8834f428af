"""Identifier utilities."""

from __future__ import annotations

import re
import string
import time

# Kubernetes object names that end up as label values are capped at 63 characters.
MAX_JOB_NAME_LENGTH = 63

_BASE36_ALPHABET = string.digits + string.ascii_lowercase
_INVALID_NAME_CHARS = re.compile(r"[^a-z0-9]+")


def to_base36(value: int) -> str:
  """Encode a non-negative integer using digits and lowercase letters."""
  if value < 0:
    raise ValueError("Only non-negative integers can be encoded.")
  if value == 0:
    return "0"

  digits: list[str] = []
  while value:
    value, remainder = divmod(value, 36)
    digits.append(_BASE36_ALPHABET[remainder])
  return "".join(reversed(digits))


def sanitize_name(name: str) -> str:
  """Reduce a human label to lowercase alphanumerics separated by single dashes."""
  return _INVALID_NAME_CHARS.sub("-", name.lower()).strip("-")


def generate_job_name(prefix: str, phase: str, name: str, *, timestamp_ms: int | None = None) -> str:
  """Return `{prefix}-{phase}-{name}-{base36 millis}` within the substrate name limit.

  The name segment absorbs any shortening so the timestamp, the only uniqueness
  component, always survives. Two calls with the same inputs in the same millisecond
  produce the same name; the substrate rejects the second submission.
  """
  if timestamp_ms is None:
    timestamp_ms = time.time_ns() // 1_000_000

  stamp = to_base36(timestamp_ms)
  head = f"{prefix}-{phase}-"
  budget = MAX_JOB_NAME_LENGTH - len(head) - len(stamp) - 1
  if budget < 1:
    raise ValueError(f"Job name prefix '{head}' leaves no room for the name segment.")

  clean = sanitize_name(name)[:budget].rstrip("-") or "job"[:budget]
  return f"{head}{clean}-{stamp}"
