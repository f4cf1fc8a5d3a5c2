"""
Artifact management for pipeline runs.

Saves report CSVs and plots for successful runs.
"""

from pathlib import Path
from typing import TYPE_CHECKING

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

if TYPE_CHECKING:
    from .runner import RunResult


class ArtifactManager:
    """Manages saving run artifacts."""

    def __init__(self, artifacts_dir: Path):
        """
        Initialize artifact manager.

        Args:
            artifacts_dir: Base directory for artifacts
        """
        self.artifacts_dir = artifacts_dir
        self.artifacts_dir.mkdir(parents=True, exist_ok=True)

    def save_artifacts(
        self,
        result: "RunResult",
        reports: dict[str, pd.DataFrame],
    ) -> Path:
        """
        Save full artifacts for a successful run.

        Args:
            result: RunResult from runner
            reports: Named report frames from RetentionReport.all()

        Returns:
            Path to run artifacts directory
        """
        run_dir = self.artifacts_dir / result.run_id
        run_dir.mkdir(exist_ok=True)

        # Save config
        result.config.to_yaml(run_dir / "config.yaml")

        # Save row counts per layer
        pd.DataFrame([result.row_counts]).to_csv(run_dir / "row_counts.csv", index=False)

        # Save reports
        for name, frame in reports.items():
            frame.to_csv(run_dir / f"{name}.csv", index=False)

        # Generate plots
        if not reports.get("segment_distribution", pd.DataFrame()).empty:
            self._plot_segment_distribution(reports["segment_distribution"], run_dir)
        if not reports.get("churn_by_segment", pd.DataFrame()).empty:
            self._plot_churn_by(
                reports["churn_by_segment"], "customer_segment", run_dir
            )
        if not reports.get("churn_by_revenue_segment", pd.DataFrame()).empty:
            self._plot_churn_by(
                reports["churn_by_revenue_segment"], "revenue_segment", run_dir
            )

        return run_dir

    def _plot_segment_distribution(
        self,
        df: pd.DataFrame,
        output_dir: Path,
    ) -> None:
        """Generate customer count per segment bar chart."""
        fig, ax = plt.subplots(figsize=(8, 6))
        sns.barplot(
            data=df,
            x="customer_segment",
            y="customer_count",
            color="steelblue",
            ax=ax,
        )
        ax.set_xlabel("Customer Segment")
        ax.set_ylabel("Customers")
        ax.set_title("Customer Segment Distribution")
        plt.tight_layout()
        plt.savefig(output_dir / "segment_distribution.png", dpi=150)
        plt.close(fig)

    def _plot_churn_by(
        self,
        df: pd.DataFrame,
        column: str,
        output_dir: Path,
    ) -> None:
        """Generate churn rate bar chart for a grouping column."""
        fig, ax = plt.subplots(figsize=(8, 6))
        sns.barplot(data=df, x=column, y="churn_rate", color="indianred", ax=ax)
        ax.set_xlabel(column.replace("_", " ").title())
        ax.set_ylabel("Churn Rate (%)")
        ax.set_title(f"Churn Rate by {column.replace('_', ' ').title()}")
        ax.set_ylim(0, 100)
        ax.grid(True, axis="y", alpha=0.3)
        plt.tight_layout()
        plt.savefig(output_dir / f"churn_by_{column}.png", dpi=150)
        plt.close(fig)

    def load_run(self, run_id: str) -> dict | None:
        """
        Load artifacts for a specific run.

        Args:
            run_id: Run ID to load

        Returns:
            Dictionary with config and report frames, or None if not found
        """
        run_dir = self.artifacts_dir / run_id
        if not run_dir.exists():
            return None

        from .config import PipelineConfig

        return {
            "config": PipelineConfig.from_yaml(run_dir / "config.yaml"),
            "row_counts": pd.read_csv(run_dir / "row_counts.csv"),
            "reports": {
                path.stem: pd.read_csv(path)
                for path in sorted(run_dir.glob("*.csv"))
                if path.stem != "row_counts"
            },
        }
