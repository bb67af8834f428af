"""Unit tests for phase-specific convertor commands."""

from __future__ import annotations

import shlex
from dataclasses import replace

import pytest

from x2a.jobs.commands import GIT_CREDENTIAL_PRELUDE, CommandTemplate, build_command, build_phase_command
from x2a.jobs.errors import JobValidationError, UnsupportedPhaseError
from x2a.jobs.models import JobRequest, MigrationPhase


def _request(phase: MigrationPhase, **fields) -> JobRequest:
  return JobRequest(phase=phase, name="demo", description=fields.pop("description", "Migrate the estate"), **fields)


def test_init_command() -> None:
  command = build_command(_request(MigrationPhase.INIT))
  assert command == "uv run python app.py init --source-dir /app/source 'Migrate the estate'"


def test_analyze_command_puts_description_before_source_dir() -> None:
  command = build_command(_request(MigrationPhase.ANALYZE, module_name="webserver"))
  assert command == "uv run python app.py analyze 'Migrate the estate' --source-dir /app/source"


def test_analyze_requires_module_name() -> None:
  with pytest.raises(JobValidationError) as excinfo:
    build_command(_request(MigrationPhase.ANALYZE))
  assert excinfo.value.missing == ("moduleName",)
  assert str(excinfo.value) == "Missing required fields for analyze phase: moduleName"


def test_migrate_command_defaults_source_technology() -> None:
  command = build_command(_request(MigrationPhase.MIGRATE, module_name="webserver"))
  assert "--source-technology Chef" in command
  assert "--high-level-migration-plan migration-plan.md" in command
  assert "--module-migration-plan migration-plan-webserver.md" in command
  assert command.endswith("'Convert webserver'")


def test_migrate_command_uses_requested_source_technology() -> None:
  command = build_command(_request(MigrationPhase.MIGRATE, module_name="webserver", source_technology="Puppet"))
  assert "--source-technology Puppet" in command


def test_migrate_requires_module_name() -> None:
  with pytest.raises(JobValidationError) as excinfo:
    build_command(_request(MigrationPhase.MIGRATE))
  assert excinfo.value.missing == ("moduleName",)


def test_publish_command_with_defaults() -> None:
  phase_command = build_phase_command(_request(MigrationPhase.PUBLISH, module_name="webserver", github_owner="acme"))
  assert phase_command.prelude == GIT_CREDENTIAL_PRELUDE
  assert phase_command.argv[4:] == ("publish", "webserver", "--source-paths", "/app/source/ansible/roles/webserver", "--github-owner", "acme", "--github-branch", "x2a-migration")
  assert phase_command.render().startswith(GIT_CREDENTIAL_PRELUDE + " && uv run python app.py publish")


def test_publish_command_with_optional_flags() -> None:
  request = _request(
    MigrationPhase.PUBLISH,
    module_name="webserver",
    github_owner="acme",
    github_branch="feature/roles",
    skip_git=True,
    base_path="clusters/dev",
    collections_file="requirements.yml",
    inventory_file="inventory.ini",
    source_paths=("roles/a", "roles/b"),
  )
  argv = build_phase_command(request).argv
  assert argv.count("--source-paths") == 2
  assert argv[argv.index("--github-branch") + 1] == "feature/roles"
  assert "--skip-git" in argv
  assert argv[argv.index("--base-path") + 1] == "clusters/dev"
  assert argv[argv.index("--collections-file") + 1] == "requirements.yml"
  assert argv[argv.index("--inventory-file") + 1] == "inventory.ini"


def test_publish_requires_module_and_owner() -> None:
  with pytest.raises(JobValidationError) as excinfo:
    build_command(_request(MigrationPhase.PUBLISH))
  assert excinfo.value.missing == ("moduleName", "githubOwner")


def test_user_values_are_shell_quoted() -> None:
  description = "x'; rm -rf / #"
  command = build_command(_request(MigrationPhase.INIT, description=description))
  assert shlex.split(command)[-1] == description


def test_template_controls_invocation_and_source_dir() -> None:
  template = replace(CommandTemplate(), convertor_command=("x2a-convertor",), source_dir="/work")
  command = build_command(_request(MigrationPhase.INIT), template)
  assert command == "x2a-convertor init --source-dir /work 'Migrate the estate'"


def test_unknown_phase_is_rejected() -> None:
  request = JobRequest(phase="rollback", name="demo", description="desc")  # type: ignore[arg-type]
  with pytest.raises(UnsupportedPhaseError, match="Unknown phase: rollback"):
    build_command(request)
