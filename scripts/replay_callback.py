"""Re-deliver a completion report for a job whose own callback never arrived.

How/Why:
- Workloads report exactly once, from their shell wrapper; a network blip loses the report.
- Operators can replay the outcome they observed (e.g. from pod status) so the ledger catches up.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
  # Ensure the local `x2a` package is importable when running from a checkout.
  sys.path.insert(0, str(REPO_ROOT))

from x2a.jobs.callback import completion_status_for  # noqa: E402
from x2a.jobs.errors import CallbackTransportError  # noqa: E402
from x2a.jobs.models import MigrationPhase  # noqa: E402

_ARTIFACT_OPTIONS = (("migration_plan", "migrationPlan"), ("module_migration_plan", "moduleMigrationPlan"), ("ansible_sources", "ansibleSources"), ("gitops_repo", "gitopsRepo"))


def build_replay_payload(args: argparse.Namespace, *, now: datetime | None = None) -> dict[str, Any]:
  """Build the camelCase report body from parsed CLI arguments."""
  status = args.status or completion_status_for(args.exit_code)
  moment = (now or datetime.now(UTC)).astimezone(UTC)
  payload: dict[str, Any] = {
    "jobName": args.job_name,
    "phase": MigrationPhase.parse(args.phase).value,
    "status": status,
    "timestamp": moment.strftime("%Y-%m-%dT%H:%M:%SZ"),
    "metadata": {"exitCode": args.exit_code, "replayed": True},
  }

  references = {key: getattr(args, attribute) for attribute, key in _ARTIFACT_OPTIONS if getattr(args, attribute)}
  if references:
    payload["artifactReferences"] = references
  if args.substatus:
    payload["substatus"] = {"key": args.substatus, **({"message": args.substatus_message} if args.substatus_message else {})}
  return payload


def _build_parser() -> argparse.ArgumentParser:
  parser = argparse.ArgumentParser(description="Replay a job completion report to the X2A callback endpoint.")
  parser.add_argument("job_name", help="Name of the job the report belongs to.")
  parser.add_argument("--phase", required=True, choices=[phase.value for phase in MigrationPhase], help="Phase the job executed.")
  parser.add_argument("--exit-code", type=int, default=0, help="Exit code the workload finished with.")
  parser.add_argument("--status", choices=["success", "failure"], help="Override the status derived from --exit-code.")
  parser.add_argument("--substatus", help="Optional substatus key.")
  parser.add_argument("--substatus-message", help="Optional substatus message.")
  parser.add_argument("--migration-plan", help="Migration plan artifact reference (init).")
  parser.add_argument("--module-migration-plan", help="Module migration plan artifact reference (analyze).")
  parser.add_argument("--ansible-sources", help="Ansible sources artifact reference (migrate).")
  parser.add_argument("--gitops-repo", help="GitOps repository artifact reference (publish).")
  parser.add_argument("--url", help="Callback URL; defaults to the configured X2A_BASE_URL endpoint.")
  parser.add_argument("--dry-run", action="store_true", help="Print the payload without sending it.")
  return parser


def main() -> None:
  """Send one completion report and print the server acknowledgement."""
  args = _build_parser().parse_args()
  payload = build_replay_payload(args)

  if args.dry_run:
    print(json.dumps(payload, indent=2))
    return

  from x2a.config import get_settings
  from x2a.services.callback_client import send_completion_report

  settings = get_settings()
  url = args.url or settings.callback_url
  try:
    acknowledgement = asyncio.run(send_completion_report(url, payload, secret=settings.callback_secret, timeout=settings.callback_timeout_seconds))
  except CallbackTransportError as exc:
    print(f"ERROR {exc}", file=sys.stderr)
    raise SystemExit(1) from exc

  print(f"DELIVERED {args.job_name} -> {url}: {json.dumps(acknowledgement)}")


if __name__ == "__main__":
  main()
