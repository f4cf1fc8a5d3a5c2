"""
Pytest fixtures for segmentation pipeline tests.
"""

import pandas as pd
import pytest

# Add packages to path
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from segmentation.config import SegmentationConfig
from segmentation.engine import SegmentationEngine, generate_sample_data
from segmentation.builder import AnalyticalRecordBuilder
from pipeline.store import CustomerStore


def make_customer(**overrides) -> dict:
    """A valid raw customer record with optional field overrides."""
    record = {
        "customer_id": "TEST_001",
        "telecom_partner": "Airtel",
        "gender": "F",
        "age": 34,
        "state": "Karnataka",
        "city": "Bengaluru",
        "pincode": "560001",
        "date_of_registration": pd.Timestamp("2023-01-15"),
        "tenure_months": 12,
        "num_dependents": 1,
        "estimated_salary": 35000.0,
        "calls_made": 100,
        "sms_sent": 50,
        "data_used": 10.0,
        "churn": 0,
    }
    record.update(overrides)
    return record


@pytest.fixture
def default_config():
    """Default segmentation configuration."""
    return SegmentationConfig()


@pytest.fixture
def engine(default_config):
    """SegmentationEngine with default config."""
    return SegmentationEngine(default_config)


@pytest.fixture
def builder(default_config):
    """AnalyticalRecordBuilder with default config."""
    return AnalyticalRecordBuilder(default_config)


@pytest.fixture
def sample_data():
    """100 sample customers with realistic distributions."""
    return generate_sample_data(n_customers=100, seed=42)


@pytest.fixture
def single_customer():
    """Single customer for simple tests."""
    return pd.DataFrame([make_customer()])


@pytest.fixture
def edge_cases():
    """Specific edge cases for testing boundary conditions."""
    return pd.DataFrame([
        # Churn precedence: churned even though new and highly engaged
        make_customer(customer_id="EDGE_CHURNED_NEW", churn=1, tenure_months=3,
                      calls_made=300, sms_sent=0, data_used=23.0769),
        # New customer regardless of usage
        make_customer(customer_id="EDGE_NEW", churn=0, tenure_months=2,
                      calls_made=0, sms_sent=0, data_used=0.0),
        # Exactly at the tenure pivot with low usage
        make_customer(customer_id="EDGE_AT_RISK", churn=0, tenure_months=6,
                      calls_made=40, sms_sent=0, data_used=0.0),
        # Exactly at the engagement threshold (score 30)
        make_customer(customer_id="EDGE_LOYAL", churn=0, tenure_months=24,
                      calls_made=120, sms_sent=0, data_used=0.0),
        # Negative counters: data errors clamped to 0
        make_customer(customer_id="EDGE_NEGATIVE", churn=0, tenure_months=10,
                      calls_made=-20, sms_sent=-5, data_used=-3.5),
        # Salary band boundaries
        make_customer(customer_id="EDGE_SALARY_20K", estimated_salary=20000.0),
        make_customer(customer_id="EDGE_SALARY_50K", estimated_salary=50000.0),
        make_customer(customer_id="EDGE_SALARY_HIGH", estimated_salary=50000.01),
    ])


@pytest.fixture
def store(tmp_path):
    """CustomerStore backed by a temporary SQLite database."""
    return CustomerStore(f"sqlite:///{tmp_path / 'retainx.db'}")
