"""Phase-specific x2a-convertor command construction.

Commands are built as argument vectors first. The shell form used inside a workload is
produced with ``shlex.join`` so request values are always quoted and never interpreted
by the shell.
"""

from __future__ import annotations

import shlex
from collections.abc import Callable
from dataclasses import dataclass

from x2a.config import Settings
from x2a.jobs.errors import JobValidationError, UnsupportedPhaseError
from x2a.jobs.models import JobRequest, MigrationPhase

HIGH_LEVEL_PLAN_FILENAME = "migration-plan.md"

# Rewrites GitHub HTTPS remotes to carry the workload's token; reads GITHUB_TOKEN at run time.
GIT_CREDENTIAL_PRELUDE = 'if [ -n "${GITHUB_TOKEN:-}" ]; then git config --global url."https://${GITHUB_TOKEN}@github.com/".insteadOf "https://github.com/"; fi'


@dataclass(frozen=True)
class CommandTemplate:
  """Fixed, deployment-level parts of every convertor invocation."""

  convertor_command: tuple[str, ...] = ("uv", "run", "python", "app.py")
  source_dir: str = "/app/source"
  default_source_technology: str = "Chef"
  default_github_branch: str = "x2a-migration"

  @classmethod
  def from_settings(cls, settings: Settings) -> CommandTemplate:
    return cls(
      convertor_command=settings.convertor_command,
      source_dir=settings.source_dir,
      default_source_technology=settings.default_source_technology,
      default_github_branch=settings.default_github_branch,
    )


@dataclass(frozen=True)
class PhaseCommand:
  """A built convertor invocation plus an optional fixed shell prelude."""

  argv: tuple[str, ...]
  prelude: str | None = None

  def render(self) -> str:
    """Return the shell form with every argument quoted."""
    command = shlex.join(self.argv)
    if self.prelude:
      return f"{self.prelude} && {command}"
    return command


def module_plan_filename(module_name: str) -> str:
  """Return the per-module migration plan filename."""
  return f"migration-plan-{module_name}.md"


def _require(request: JobRequest, **fields: str | None) -> None:
  missing = tuple(name for name, value in fields.items() if not value or not value.strip())
  if missing:
    raise JobValidationError(f"Missing required fields for {request.phase.value} phase: {', '.join(missing)}", missing=missing)


def _init_argv(request: JobRequest, template: CommandTemplate) -> PhaseCommand:
  argv = (*template.convertor_command, "init", "--source-dir", template.source_dir, request.description)
  return PhaseCommand(argv=argv)


def _analyze_argv(request: JobRequest, template: CommandTemplate) -> PhaseCommand:
  _require(request, moduleName=request.module_name)
  argv = (*template.convertor_command, "analyze", request.description, "--source-dir", template.source_dir)
  return PhaseCommand(argv=argv)


def _migrate_argv(request: JobRequest, template: CommandTemplate) -> PhaseCommand:
  _require(request, moduleName=request.module_name)
  module_name = request.module_name or ""
  source_technology = request.source_technology or template.default_source_technology
  argv = (
    *template.convertor_command,
    "migrate",
    "--source-dir",
    template.source_dir,
    "--source-technology",
    source_technology,
    "--high-level-migration-plan",
    HIGH_LEVEL_PLAN_FILENAME,
    "--module-migration-plan",
    module_plan_filename(module_name),
    f"Convert {module_name}",
  )
  return PhaseCommand(argv=argv)


def _publish_argv(request: JobRequest, template: CommandTemplate) -> PhaseCommand:
  _require(request, moduleName=request.module_name, githubOwner=request.github_owner)
  module_name = request.module_name or ""
  source_paths = [path for path in request.source_paths if path] or [f"{template.source_dir}/ansible/roles/{module_name}"]

  argv: list[str] = [*template.convertor_command, "publish", module_name]
  for path in source_paths:
    argv.extend(["--source-paths", path])
  argv.extend(["--github-owner", request.github_owner or "", "--github-branch", request.github_branch or template.default_github_branch])

  # Optional flags only appear when the caller set them.
  if request.skip_git:
    argv.append("--skip-git")
  if request.base_path:
    argv.extend(["--base-path", request.base_path])
  if request.collections_file:
    argv.extend(["--collections-file", request.collections_file])
  if request.inventory_file:
    argv.extend(["--inventory-file", request.inventory_file])

  return PhaseCommand(argv=tuple(argv), prelude=GIT_CREDENTIAL_PRELUDE)


_PHASE_BUILDERS: dict[MigrationPhase, Callable[[JobRequest, CommandTemplate], PhaseCommand]] = {
  MigrationPhase.INIT: _init_argv,
  MigrationPhase.ANALYZE: _analyze_argv,
  MigrationPhase.MIGRATE: _migrate_argv,
  MigrationPhase.PUBLISH: _publish_argv,
}


def build_phase_command(request: JobRequest, template: CommandTemplate | None = None) -> PhaseCommand:
  """Build the convertor invocation for a request's phase."""
  phase = MigrationPhase.parse(request.phase)
  builder = _PHASE_BUILDERS.get(phase)
  if builder is None:
    raise UnsupportedPhaseError(phase)
  return builder(request, template or CommandTemplate())


def build_command(request: JobRequest, template: CommandTemplate | None = None) -> str:
  """Return the shell-safe command string for a request."""
  return build_phase_command(request, template).render()
