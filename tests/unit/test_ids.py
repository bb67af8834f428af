"""Unit tests for job identity generation."""

from __future__ import annotations

import re

import pytest

from x2a.utils.ids import MAX_JOB_NAME_LENGTH, generate_job_name, sanitize_name, to_base36

_LABEL = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")


def test_to_base36_encodes_known_values() -> None:
  assert to_base36(0) == "0"
  assert to_base36(35) == "z"
  assert to_base36(36) == "10"
  assert to_base36(1_700_000_000_000) == "loyw3v28"


def test_to_base36_rejects_negative_values() -> None:
  with pytest.raises(ValueError):
    to_base36(-1)


def test_sanitize_name_collapses_invalid_runs() -> None:
  assert sanitize_name("  My Cool_Project!! v2 ") == "my-cool-project-v2"
  assert sanitize_name("---") == ""


def test_generate_job_name_is_deterministic_for_same_tick() -> None:
  first = generate_job_name("x2a", "migrate", "Demo", timestamp_ms=1_700_000_000_000)
  second = generate_job_name("x2a", "migrate", "Demo", timestamp_ms=1_700_000_000_000)
  assert first == second == "x2a-migrate-demo-loyw3v28"


def test_generate_job_name_differs_across_ticks() -> None:
  first = generate_job_name("x2a", "init", "demo", timestamp_ms=1_700_000_000_000)
  second = generate_job_name("x2a", "init", "demo", timestamp_ms=1_700_000_000_001)
  assert first != second


def test_long_names_keep_timestamp_and_fit_limit() -> None:
  stamp = to_base36(1_700_000_000_000)
  job_name = generate_job_name("x2a", "publish", "a" * 200, timestamp_ms=1_700_000_000_000)
  assert len(job_name) == MAX_JOB_NAME_LENGTH
  assert job_name.endswith(f"-{stamp}")
  assert _LABEL.match(job_name)


def test_truncation_never_leaves_double_dash() -> None:
  # The cut lands right after a dash in the sanitized name.
  name = "a" * 41 + "-" + "b" * 20
  job_name = generate_job_name("x2a", "publish", name, timestamp_ms=1_700_000_000_000)
  assert "--" not in job_name
  assert _LABEL.match(job_name)
  assert len(job_name) <= MAX_JOB_NAME_LENGTH


def test_unusable_name_falls_back_to_placeholder() -> None:
  assert generate_job_name("x2a", "init", "!!!", timestamp_ms=36) == "x2a-init-job-10"
