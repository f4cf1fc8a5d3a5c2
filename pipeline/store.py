"""
Relational storage for raw, segment and analytics tables.

Tables:
- retainx_customer_raw: one row per customer, plus feature columns
- retainx_retention_segments: lifecycle segmentation output
- retainx_customer_analytics: denormalized analytical (gold) table
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import pandas as pd
import sqlalchemy as sa
from sqlalchemy.engine import Connection

from segmentation.schemas import RAW_CUSTOMER_SCHEMA

logger = logging.getLogger(__name__)


metadata = sa.MetaData()

customer_raw = sa.Table(
    "retainx_customer_raw",
    metadata,
    sa.Column("customer_id", sa.String(50), primary_key=True),
    sa.Column("telecom_partner", sa.String(50)),
    sa.Column("gender", sa.String(15)),
    sa.Column("age", sa.Integer),
    sa.Column("state", sa.String(100)),
    sa.Column("city", sa.String(100)),
    sa.Column("pincode", sa.String(20)),
    sa.Column("date_of_registration", sa.Date),
    sa.Column("tenure_months", sa.Integer),
    sa.Column("num_dependents", sa.Integer),
    sa.Column("estimated_salary", sa.Numeric(12, 2, asdecimal=False)),
    sa.Column("calls_made", sa.Integer),
    sa.Column("sms_sent", sa.Integer),
    sa.Column("data_used", sa.Numeric(12, 2, asdecimal=False)),
    sa.Column("churn", sa.Integer),
    # Feature columns, (re)computed by every run
    sa.Column("revenue_segment", sa.String(20)),
    sa.Column("usage_score", sa.Float),
    sa.Column("usage_category", sa.String(20)),
)

retention_segments = sa.Table(
    "retainx_retention_segments",
    metadata,
    sa.Column("customer_id", sa.String(50), primary_key=True),
    sa.Column("churn", sa.Integer, nullable=False),
    sa.Column("tenure_months", sa.Integer, nullable=False),
    sa.Column("revenue_segment", sa.String(20), nullable=False),
    sa.Column("usage_score", sa.Float, nullable=False),
    sa.Column("usage_category", sa.String(20), nullable=False),
    sa.Column("customer_segment", sa.String(30), nullable=False),
)

customer_analytics = sa.Table(
    "retainx_customer_analytics",
    metadata,
    sa.Column("customer_id", sa.String(50), primary_key=True),
    sa.Column("customer_segment", sa.String(30), nullable=False),
    sa.Column("usage_score", sa.Float, nullable=False),
    sa.Column("usage_category", sa.String(20), nullable=False),
    sa.Column("revenue_segment", sa.String(20), nullable=False),
    sa.Column("tenure_months", sa.Integer, nullable=False),
    sa.Column("gender", sa.String(15)),
    sa.Column("age", sa.Integer),
    sa.Column("state", sa.String(100)),
    sa.Column("city", sa.String(100)),
    sa.Column("estimated_salary", sa.Numeric(12, 2, asdecimal=False)),
    sa.Column("churn", sa.Integer, nullable=False),
    sa.Column("calls_made", sa.Integer, nullable=False),
    sa.Column("sms_sent", sa.Integer, nullable=False),
    sa.Column("data_used", sa.Numeric(12, 2, asdecimal=False), nullable=False),
)

DERIVED_TABLES = [retention_segments, customer_analytics]

# Raw columns rewritten by a run: clamped counters and feature columns
RAW_UPDATE_COLUMNS = [
    "calls_made",
    "sms_sent",
    "data_used",
    "revenue_segment",
    "usage_score",
    "usage_category",
]


def _to_records(df: pd.DataFrame, table: sa.Table) -> list[dict]:
    """Convert a DataFrame to driver-friendly row dicts for a table."""
    frame = df[[c.name for c in table.columns if c.name in df.columns]].copy()
    for col in table.columns:
        if (
            isinstance(col.type, sa.Date)
            and col.name in frame
            and pd.api.types.is_datetime64_any_dtype(frame[col.name])
        ):
            frame[col.name] = frame[col.name].dt.date
    frame = frame.astype(object)
    frame = frame.where(frame.notna(), None)
    return frame.to_dict("records")


def _enable_transactional_ddl(engine: sa.Engine) -> None:
    """Make pysqlite emit BEGIN itself so table drops roll back too."""

    @sa.event.listens_for(engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @sa.event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


class CustomerStore:
    """
    SQLAlchemy-backed store for the pipeline tables.

    Usage:
        store = CustomerStore("sqlite:///retainx.db")
        store.ingest_csv("customers.csv")

        with store.transaction() as conn:
            raw = store.read_raw(conn)
            ...
            store.write_derived(conn, curated, segments, analytics)
    """

    def __init__(self, database_url: str, engine: Optional[sa.Engine] = None):
        """
        Initialize store.

        Args:
            database_url: SQLAlchemy database URL
            engine: Pre-built engine (overrides database_url)
        """
        self.database_url = database_url
        self.engine = engine or sa.create_engine(database_url, pool_pre_ping=True)
        if self.engine.dialect.name == "sqlite":
            _enable_transactional_ddl(self.engine)

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """
        Single transaction: commits on success, rolls back on any error.
        """
        with self.engine.begin() as conn:
            yield conn

    def ingest_frame(self, df: pd.DataFrame) -> int:
        """
        Replace the raw table with the given records.

        Derived tables are dropped in the same transaction so they
        never describe a different raw snapshot.

        Args:
            df: Raw customer records

        Returns:
            Number of rows loaded
        """
        validated = RAW_CUSTOMER_SCHEMA.validate(df.copy())
        records = _to_records(validated, customer_raw)

        with self.transaction() as conn:
            for table in DERIVED_TABLES:
                table.drop(conn, checkfirst=True)
            customer_raw.drop(conn, checkfirst=True)
            customer_raw.create(conn)
            if records:
                conn.execute(customer_raw.insert(), records)

        logger.info("Loaded %d raw customer records", len(records))
        return len(records)

    def ingest_csv(self, path: Path | str) -> int:
        """Load a CSV extract into the raw table."""
        df = pd.read_csv(
            path,
            dtype={"customer_id": str, "pincode": str},
            parse_dates=["date_of_registration"],
        )
        logger.info("Read %d rows from %s", len(df), path)
        return self.ingest_frame(df)

    def read_raw(self, conn: Connection) -> pd.DataFrame:
        """Read all raw customer records."""
        return pd.read_sql(
            sa.select(customer_raw).order_by(customer_raw.c.customer_id),
            conn,
        )

    def write_derived(
        self,
        conn: Connection,
        curated: pd.DataFrame,
        segments: pd.DataFrame,
        analytics: pd.DataFrame,
    ) -> None:
        """
        Persist one run's output inside the caller's transaction.

        - Raw table: clamped counters and feature columns updated in place
        - Segment and analytics tables: dropped and rebuilt

        Args:
            conn: Open transactional connection
            curated: Raw records with clamped counters and derived columns
            segments: Retention segments table
            analytics: Analytical table
        """
        update = (
            customer_raw.update()
            .where(customer_raw.c.customer_id == sa.bindparam("key_customer_id"))
            .values({col: sa.bindparam(f"new_{col}") for col in RAW_UPDATE_COLUMNS})
        )
        rows = [
            {"key_customer_id": row["customer_id"],
             **{f"new_{col}": row[col] for col in RAW_UPDATE_COLUMNS}}
            for row in _to_records(curated[["customer_id", *RAW_UPDATE_COLUMNS]], customer_raw)
        ]
        if rows:
            conn.execute(update, rows)

        for table, frame in ((retention_segments, segments), (customer_analytics, analytics)):
            table.drop(conn, checkfirst=True)
            table.create(conn)
            records = _to_records(frame, table)
            if records:
                conn.execute(table.insert(), records)
            logger.info("Wrote %d rows to %s", len(records), table.name)

    def row_counts(self, conn: Optional[Connection] = None) -> dict[str, int]:
        """Row count per pipeline table (missing tables count as 0)."""
        if conn is None:
            with self.engine.connect() as fresh:
                return self.row_counts(fresh)

        inspector = sa.inspect(conn)
        counts = {}
        for name, table in (
            ("raw", customer_raw),
            ("segments", retention_segments),
            ("analytics", customer_analytics),
        ):
            if inspector.has_table(table.name):
                counts[name] = conn.execute(
                    sa.select(sa.func.count()).select_from(table)
                ).scalar_one()
            else:
                counts[name] = 0
        return counts

    def read_table(self, name: str) -> pd.DataFrame:
        """Read a pipeline table by name."""
        tables = {t.name: t for t in metadata.sorted_tables}
        if name not in tables:
            raise ValueError(f"Unknown table {name!r}; expected one of {sorted(tables)}")
        table = tables[name]
        with self.engine.connect() as conn:
            return pd.read_sql(
                sa.select(table).order_by(table.c.customer_id), conn
            )
