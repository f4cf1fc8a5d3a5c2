"""
Pipeline runner for customer segmentation.

Single entry point for end-to-end batch runs.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from segmentation import (
    AnalyticalRecordBuilder,
    RetentionReport,
    SegmentationEngine,
    SegmentationError,
)
from segmentation.schemas import validate_raw_records

from .config import PipelineConfig
from .logger import RunLogger
from .artifacts import ArtifactManager
from .store import CustomerStore

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Container for pipeline run results."""

    run_id: str
    config: PipelineConfig
    row_counts: dict
    segment_counts: dict
    churn_rate: float
    timestamp: datetime
    duration_seconds: float
    analytics: pd.DataFrame = field(repr=False, default_factory=pd.DataFrame)

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            f"[{self.run_id}] {self.config.name} - PASS",
            f"  Customers:  {self.row_counts.get('raw', 0)}",
            f"  Churn rate: {self.churn_rate:.2f}%",
        ]
        for segment, count in self.segment_counts.items():
            lines.append(f"  {segment + ':':<18}{count}")
        return "\n".join(lines)


class PipelineRunner:
    """
    Single entry point for running the pipeline.

    Usage:
        runner = PipelineRunner()

        # From YAML config
        result = runner.run_from_yaml("configs/default.yaml")

        # From PipelineConfig object
        config = PipelineConfig(name="custom", ...)
        result = runner.run(config)

        # Batch run
        results = runner.run_batch(["configs/a.yaml", "configs/b.yaml"])
    """

    def __init__(
        self,
        base_path: Optional[Path] = None,
        logs_dir: str = "logs",
        artifacts_dir: str = "artifacts",
    ):
        """
        Initialize runner.

        Args:
            base_path: Base path for runs (default: this file's parent)
            logs_dir: Subdirectory for logs
            artifacts_dir: Subdirectory for artifacts
        """
        self.base_path = base_path or Path(__file__).parent
        self.logs_dir = self.base_path / logs_dir
        self.artifacts_dir = self.base_path / artifacts_dir

        self.run_logger = RunLogger(self.logs_dir)
        self.artifact_manager = ArtifactManager(self.artifacts_dir)

    def generate_run_id(self) -> str:
        """Generate unique run ID: run_YYYYMMDD_XXXX"""
        date_str = datetime.now().strftime("%Y%m%d")
        short_uuid = uuid.uuid4().hex[:4]
        return f"run_{date_str}_{short_uuid}"

    def run(self, config: PipelineConfig) -> RunResult:
        """
        Run the full derivation as one atomic batch.

        clamp -> score -> segment -> join -> write all happen inside a
        single transaction; any failure rolls back to the previous
        derived state.

        Args:
            config: PipelineConfig to run

        Returns:
            RunResult with row counts and segment counts
        """
        run_id = self.generate_run_id()
        start_time = datetime.now()

        try:
            segmentation_config = config.segmentation_config()
            engine = SegmentationEngine(segmentation_config)
            builder = AnalyticalRecordBuilder(segmentation_config)
            store = CustomerStore(config.database_url)

            if config.input_path:
                store.ingest_csv(self.base_path / config.input_path)

            with store.transaction() as conn:
                raw = validate_raw_records(store.read_raw(conn))
                logger.info("[%s] Read %d raw records", run_id, len(raw))

                result = engine.segment(
                    raw,
                    n_workers=config.n_workers,
                    parallel_threshold=config.parallel_threshold,
                )
                analytics = builder.build(result.df, result.segments)

                store.write_derived(conn, result.df, result.segments, analytics)

                # Verify what was persisted, before commit
                row_counts = store.row_counts(conn)
                builder.check_row_counts(**row_counts)

            duration = (datetime.now() - start_time).total_seconds()
            report = RetentionReport(analytics, segmentation_config)

            run_result = RunResult(
                run_id=run_id,
                config=config,
                row_counts=row_counts,
                segment_counts=result.segment_counts(),
                churn_rate=report.churn_rate(),
                timestamp=start_time,
                duration_seconds=duration,
                analytics=analytics,
            )

            # Always log
            self.run_logger.log_run(run_result)

            if config.save_artifacts:
                self.artifact_manager.save_artifacts(
                    run_result,
                    reports=report.all(limit=config.top_at_risk_limit),
                )

            logger.info("[%s] Completed in %.2fs", run_id, duration)
            return run_result

        except SegmentationError as e:
            logger.error("[%s] Failed at stage %s: %s", run_id, e.stage, e)
            self.run_logger.log_failure(
                run_id, config, e, stage=e.stage, customer_ids=e.customer_ids
            )
            raise
        except Exception as e:
            logger.error("[%s] Failed: %s", run_id, e)
            self.run_logger.log_failure(run_id, config, e)
            raise

    def run_from_yaml(self, config_path: str | Path) -> RunResult:
        """
        Load config from YAML and run.

        Args:
            config_path: Path to YAML config (relative to base_path or absolute)

        Returns:
            RunResult
        """
        path = Path(config_path)
        if not path.is_absolute():
            path = self.base_path / path
        config = PipelineConfig.from_yaml(path)
        return self.run(config)

    def run_batch(
        self,
        config_paths: list[str | Path],
        stop_on_failure: bool = False,
    ) -> list[RunResult]:
        """
        Run multiple configs in sequence.

        Args:
            config_paths: List of paths to YAML configs
            stop_on_failure: Whether to stop if a run errors

        Returns:
            List of RunResults for the runs that completed
        """
        results = []
        for path in config_paths:
            try:
                result = self.run_from_yaml(path)
                results.append(result)
                print(result.summary())
                print()
            except Exception as e:
                print(f"ERROR: {path} - {e}")
                if stop_on_failure:
                    raise
        return results

    def list_runs(self) -> pd.DataFrame:
        """
        Get summary of all past runs.

        Returns:
            DataFrame with run history
        """
        return self.run_logger.get_summary_dataframe()
