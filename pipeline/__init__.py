"""
Batch pipeline for customer segmentation.

Usage:
    from pipeline import PipelineRunner, PipelineConfig

    # Run from YAML
    runner = PipelineRunner()
    result = runner.run_from_yaml("configs/default.yaml")
    print(result.summary())

    # Run programmatically
    config = PipelineConfig(
        name="custom",
        database_url="sqlite:///retainx.db",
        input_path="data/customers.csv",
    )
    result = runner.run(config)

CLI:
    python -m pipeline.run configs/default.yaml
    python -m pipeline.run --list
"""

from .config import PipelineConfig
from .runner import PipelineRunner, RunResult
from .store import CustomerStore
from .logger import RunLogger
from .artifacts import ArtifactManager

__all__ = [
    "PipelineConfig",
    "PipelineRunner",
    "RunResult",
    "CustomerStore",
    "RunLogger",
    "ArtifactManager",
]
