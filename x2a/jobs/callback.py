"""Shell wrapper that reports a workload's completion back to the service.

Workloads run detached, so the only way the service learns about an outcome is the
workload announcing it. The wrapper runs the inner command, posts a small JSON report to
``$CALLBACK_URL`` and exits with the inner command's exit code whatever happens to the
report. Identity values reach the script through the workload environment
(``JOB_NAME``, ``MIGRATION_PHASE``, ``CALLBACK_URL``, ``CALLBACK_SECRET``), never through
the script text.
"""

from __future__ import annotations

from x2a.jobs.models import CompletionStatus

DEFAULT_CALLBACK_TIMEOUT_SECONDS = 10
CALLBACK_SECRET_HEADER = "X-Callback-Secret"

# The inner command runs as a background subshell so that `exit` inside it cannot skip the
# report and TERM/INT sent to the wrapper (pod deletion) reach it.
_RUN_INNER_HEAD = "(\n"
_RUN_INNER_TAIL = """
) &
X2A_CHILD_PID=$!
trap 'kill -TERM "$X2A_CHILD_PID" 2>/dev/null' TERM INT
wait "$X2A_CHILD_PID"
EXIT_CODE=$?
# A trapped signal interrupts wait; collect the child's own status afterwards.
if kill -0 "$X2A_CHILD_PID" 2>/dev/null; then
  wait "$X2A_CHILD_PID"
  EXIT_CODE=$?
fi
trap - TERM INT
"""

_REPORT = """
if [ "$EXIT_CODE" -eq 0 ]; then
  STATUS="success"
else
  STATUS="failure"
fi

TIMESTAMP=$(date -u +"%Y-%m-%dT%H:%M:%SZ")
X2A_REPORT_JOB_NAME=$(printf '%s' "${JOB_NAME:-}" | tr -d '"\\\\')
X2A_REPORT_PHASE=$(printf '%s' "${MIGRATION_PHASE:-}" | tr -d '"\\\\')
CALLBACK_PAYLOAD=$(printf '{"jobName":"%s","phase":"%s","status":"%s","timestamp":"%s","metadata":{"exitCode":%d}}' "$X2A_REPORT_JOB_NAME" "$X2A_REPORT_PHASE" "$STATUS" "$TIMESTAMP" "$EXIT_CODE")
echo "Callback payload: $CALLBACK_PAYLOAD"

# Callback failures are reported and ignored; they must not change the exit code.
if [ -n "${CALLBACK_URL:-}" ]; then
  echo "Calling callback: $CALLBACK_URL"
  if ! command -v curl >/dev/null 2>&1; then
    echo "Warning: curl not available, callback skipped" >&2
  elif [ -n "${CALLBACK_SECRET:-}" ]; then
    curl -X POST "$CALLBACK_URL" \\
      -H "Content-Type: application/json" \\
      -H "X-Callback-Secret: $CALLBACK_SECRET" \\
      -d "$CALLBACK_PAYLOAD" \\
      --max-time "$X2A_CALLBACK_MAX_TIME" \\
      --silent \\
      --show-error \\
      --fail || echo "Warning: Callback failed but continuing..." >&2
  else
    curl -X POST "$CALLBACK_URL" \\
      -H "Content-Type: application/json" \\
      -d "$CALLBACK_PAYLOAD" \\
      --max-time "$X2A_CALLBACK_MAX_TIME" \\
      --silent \\
      --show-error \\
      --fail || echo "Warning: Callback failed but continuing..." >&2
  fi
fi

exit "$EXIT_CODE"
"""


def completion_status_for(exit_code: int) -> CompletionStatus:
  """Map a process exit code to the reported completion status."""
  return "success" if exit_code == 0 else "failure"


def wrap_with_callback(inner_command: str, *, timeout_seconds: int = DEFAULT_CALLBACK_TIMEOUT_SECONDS) -> str:
  """Wrap a shell command so its completion is reported to ``$CALLBACK_URL``.

  The returned script exits with exactly the inner command's exit code. The report is a
  JSON object ``{jobName, phase, status, timestamp, metadata: {exitCode}}``.
  """
  if timeout_seconds <= 0:
    raise ValueError("Callback timeout must be a positive number of seconds.")
  if not inner_command.strip():
    raise ValueError("Cannot wrap an empty command.")

  header = f"X2A_CALLBACK_MAX_TIME={int(timeout_seconds)}\n"
  return header + _RUN_INNER_HEAD + inner_command.strip() + _RUN_INNER_TAIL + _REPORT.rstrip() + "\n"
