"""
Run configuration for the segmentation pipeline.

Defines the PipelineConfig dataclass for YAML-driven batch runs.
"""

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional

import yaml

from segmentation.config import SegmentationConfig


@dataclass
class PipelineConfig:
    """
    Configuration for a single pipeline run.

    Load from YAML:
        config = PipelineConfig.from_yaml("configs/default.yaml")

    Create programmatically:
        config = PipelineConfig(
            name="lenient_salary",
            description="Route missing salaries to Low Income",
            segmentation={"invalid_salary_policy": "zero"},
        )
    """

    # Metadata
    name: str
    description: str = ""

    # Storage
    database_url: str = "sqlite:///retainx.db"

    # Optional CSV to (re)load into the raw table before deriving.
    # Relative to the runner base path.
    input_path: Optional[str] = None

    # Overrides passed to SegmentationConfig, e.g.
    # {"usage_weights": {...}, "usage_bounds": [30, 75]}
    segmentation: dict = field(default_factory=dict)

    # Sharding
    n_workers: Optional[int] = None
    parallel_threshold: int = 100_000

    # Reporting
    top_at_risk_limit: int = 50
    save_artifacts: bool = True

    @classmethod
    def from_yaml(cls, path: Path | str) -> "PipelineConfig":
        """Load configuration from YAML file."""
        path = Path(path)
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls(**data)

    def to_yaml(self, path: Path | str) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(asdict(self), f, default_flow_style=False, sort_keys=False)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    def segmentation_config(self) -> SegmentationConfig:
        """Build the SegmentationConfig for this run."""
        return SegmentationConfig(**self.segmentation)
