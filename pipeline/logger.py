"""
Run logging for the segmentation pipeline.

Writes JSON logs for all runs (pass or error).
"""

import json
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import pandas as pd

if TYPE_CHECKING:
    from .runner import RunResult
    from .config import PipelineConfig


class RunLogger:
    """Structured JSON logging for pipeline runs."""

    def __init__(self, logs_dir: Path):
        """
        Initialize logger.

        Args:
            logs_dir: Directory to write log files
        """
        self.logs_dir = logs_dir
        self.logs_dir.mkdir(parents=True, exist_ok=True)

    def log_run(self, result: "RunResult") -> Path:
        """
        Log a completed run to a JSON file.

        Args:
            result: RunResult from runner

        Returns:
            Path to log file
        """
        log_entry = {
            "run_id": result.run_id,
            "timestamp": result.timestamp.isoformat(),
            "duration_seconds": result.duration_seconds,
            "config": result.config.to_dict(),
            "results": {
                "row_counts": result.row_counts,
                "segment_counts": result.segment_counts,
                "churn_rate": result.churn_rate,
            },
            "status": "PASS",
        }

        log_path = self.logs_dir / f"{result.run_id}.json"
        with open(log_path, "w") as f:
            json.dump(log_entry, f, indent=2, default=str)

        return log_path

    def log_failure(
        self,
        run_id: str,
        config: "PipelineConfig",
        error: Exception,
        stage: Optional[str] = None,
        customer_ids: Optional[list[str]] = None,
    ) -> Path:
        """
        Log a failed run.

        Args:
            run_id: Unique run ID
            config: PipelineConfig used
            error: Exception that aborted the run
            stage: Pipeline stage that failed, if known
            customer_ids: Offending customer ids, if known

        Returns:
            Path to log file
        """
        log_entry = {
            "run_id": run_id,
            "timestamp": datetime.now().isoformat(),
            "config": config.to_dict(),
            "status": "ERROR",
            "error_type": type(error).__name__,
            "error": str(error),
            "stage": stage,
            "customer_ids": customer_ids or [],
        }

        log_path = self.logs_dir / f"{run_id}.json"
        with open(log_path, "w") as f:
            json.dump(log_entry, f, indent=2, default=str)

        return log_path

    def get_all_logs(self) -> list[dict]:
        """
        Load all run logs.

        Returns:
            List of log dictionaries, sorted by file name
        """
        logs = []
        for log_file in sorted(self.logs_dir.glob("run_*.json")):
            with open(log_file) as f:
                logs.append(json.load(f))
        return logs

    def get_summary_dataframe(self) -> pd.DataFrame:
        """
        Get summary of all runs as DataFrame.

        Returns:
            DataFrame with run summaries, newest first
        """
        logs = self.get_all_logs()
        if not logs:
            return pd.DataFrame()

        summary = []
        for log in logs:
            entry = {
                "run_id": log["run_id"],
                "name": log["config"]["name"],
                "timestamp": log["timestamp"],
                "status": log["status"],
            }

            if "results" in log:
                entry["customers"] = log["results"]["row_counts"].get("raw")
                entry["churn_rate"] = log["results"].get("churn_rate")
            else:
                entry["error"] = log.get("error")

            summary.append(entry)

        df = pd.DataFrame(summary)
        return df.sort_values("timestamp", ascending=False)
