"""Per-run reports and benchmark-wide aggregation."""

import csv
import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from ..models.schemas import BenchCase, BenchResult
from ..utils.logging_utils import RunLog, utc_timestamp

REPORT_FILE = "report.json"
REPORT_FORMAT = "1"
GENERATOR = "agentbench"


class SkippedCase(BaseModel):
    """A case that was not run because its agent backend is unavailable."""

    id: str = Field(..., description="Case identifier")
    agent_kind: str = Field(..., description="Agent kind that was unavailable")
    reason: str = Field(default="", description="Why the case was skipped")


class BenchmarkResults(BaseModel):
    """Aggregated results across all benchmark runs."""

    runs: list[BenchResult] = Field(default_factory=list, description="All individual runs")
    skipped: list[SkippedCase] = Field(default_factory=list, description="Cases not run")
    summary: dict = Field(default_factory=dict, description="Summary statistics")

    @property
    def all_passed(self) -> bool:
        return all(r.success for r in self.runs)


def result_reason(result: BenchResult) -> str:
    """One-line explanation of a run's outcome."""
    if result.error:
        return result.error
    agent = result.agent_result
    if agent is not None and not agent.succeeded:
        return f"agent {agent.diagnostic or 'failed'}"
    if result.judgment is not None:
        return result.judgment.reasoning
    return "no outcome recorded"


class ResultsAggregator:
    """Saves per-run reports and aggregates benchmark results."""

    @staticmethod
    def write_report(
        case: BenchCase,
        result: BenchResult,
        run_log: RunLog,
        started_at: str,
        finished_at: Optional[str] = None,
    ) -> Path:
        """Write ``report.json`` next to the run log.

        Returns:
            Path of the written report.
        """
        checks = result.judgment.checks if result.judgment else []
        report = {
            "runId": result.run_id,
            "caseId": case.id,
            "success": result.success,
            "reason": result_reason(result),
            "startedAt": started_at,
            "finishedAt": finished_at or utc_timestamp(),
            "durationMs": result.duration_millis,
            "logPath": RunLog.FILE_NAME,
            "status": result.judgment.status.value if result.judgment else None,
            "checks": [
                {"name": c.name, "passed": c.passed, "error": c.error, "message": c.detail}
                for c in checks
            ],
            "provenance": {
                "generator": GENERATOR,
                "reportFormat": REPORT_FORMAT,
                "generatedAt": utc_timestamp(),
                "agent": {"kind": case.agent.kind, "model": case.agent.model},
            },
        }
        report_path = run_log.run_root / REPORT_FILE
        with open(report_path, "w") as f:
            json.dump(report, f, indent=2, default=str)
        return report_path

    @staticmethod
    def save_summary(
        results: BenchmarkResults,
        cases: list[BenchCase],
        output_dir: Path,
    ) -> None:
        """Generate summary CSV and JSON from all runs."""
        output_dir.mkdir(parents=True, exist_ok=True)
        by_id = {c.id: c for c in cases}

        passed = sum(1 for r in results.runs if r.success)
        results.summary = {
            "total": len(results.runs),
            "passed": passed,
            "failed": len(results.runs) - passed,
            "skipped": len(results.skipped),
            "duration_ms": sum(r.duration_millis for r in results.runs),
        }

        with open(output_dir / "summary.json", "w") as f:
            json.dump(results.model_dump(mode="json", by_alias=True), f, indent=2, default=str)

        if results.runs:
            fieldnames = ["id", "category", "agent_kind", "success", "stage", "duration_ms"]
            with open(output_dir / "summary.csv", "w", newline="") as f:
                writer = csv.DictWriter(f, fieldnames=fieldnames)
                writer.writeheader()
                for run in results.runs:
                    case = by_id.get(run.id)
                    writer.writerow({
                        "id": run.id,
                        "category": case.category if case else "",
                        "agent_kind": case.agent.kind if case else "",
                        "success": run.success,
                        "stage": run.stage.value,
                        "duration_ms": run.duration_millis,
                    })
