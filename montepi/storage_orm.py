# storage_orm.py
"""
Run-history storage on DuckDB using SQLAlchemy 2.0 ORM.
Requires: sqlalchemy>=2, duckdb, duckdb-engine
    pip install "SQLAlchemy>=2" duckdb duckdb-engine
"""

from __future__ import annotations
from typing import Optional, List, Dict, Any
import os
import datetime
import logging

from sqlalchemy import create_engine, Double, Integer, DateTime, select, func, Sequence, asc, desc, delete
from sqlalchemy.dialects import sqlite
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from .core import AccumulatorState, EstimateReport, Geometry

MAX_FETCH = 10_000

_SQL_LOGGING = os.environ.get("ENABLE_SQL_LOGGING", "false").lower() in ("true", "1", "t")


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass

run_id_seq = Sequence('run_id_seq')

class Run(Base):
    __tablename__ = "runs"
    id: Mapped[int] = mapped_column(Integer, run_id_seq, primary_key=True, server_default=run_id_seq.next_value())
    ts: Mapped[datetime.datetime] = mapped_column(DateTime, default=_utcnow, index=True, nullable=False)
    total: Mapped[int] = mapped_column(Integer, nullable=False)
    inside: Mapped[int] = mapped_column(Integer, nullable=False)
    # NULL for an empty run
    pi_estimate: Mapped[Optional[float]] = mapped_column(Double, nullable=True)
    z_score: Mapped[float] = mapped_column(Double, nullable=False)
    square_size: Mapped[float] = mapped_column(Double, nullable=False)
    offset: Mapped[float] = mapped_column("square_offset", Double, nullable=False)

class Storage:
    def __init__(self, db_path: str):
        # Ensure parent directory exists so DuckDB can create the file
        try:
            db_dir = os.path.dirname(os.path.abspath(db_path))
            if db_dir and not os.path.isdir(db_dir):
                os.makedirs(db_dir, exist_ok=True)
        except OSError as e:
            # Non-fatal; connecting will still raise if path truly invalid
            logging.debug("Could not create database directory: %s", e)

        self.db_path = db_path
        self.engine = create_engine(f"duckdb:///{db_path}", future=True)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False, future=True)
        Base.metadata.create_all(self.engine)
        logging.debug("Run history storage ready at %s", db_path)

    def close(self) -> None:
        self.engine.dispose()

    def record_run(self, state: AccumulatorState, report: EstimateReport, geometry: Geometry) -> int:
        """Persist the summary of one run. Returns the new row id."""
        with self.SessionLocal() as s:
            run = Run(
                total=state.total, inside=state.inside,
                pi_estimate=report.pi_estimate, z_score=report.z_score,
                square_size=geometry.square_size, offset=geometry.offset,
            )
            s.add(run)
            s.commit()
            logging.info("Recorded run %s: %d samples, pi ~ %s", run.id, state.total, report.pi_estimate)
            return run.id

    def fetch_runs(self, *, n: int = 100, order: str = "latest") -> List[Dict[str, Any]]:
        """Fetch run summaries, newest first unless order='earliest'."""
        with self.SessionLocal() as s:
            stmt = select(Run).order_by(
                desc(Run.ts) if order != "earliest" else asc(Run.ts),
                desc(Run.id) if order != "earliest" else asc(Run.id),
            ).limit(int(max(1, min(n, MAX_FETCH))))

            if _SQL_LOGGING:
                compiled_stmt = stmt.compile(dialect=sqlite.dialect(), compile_kwargs={"literal_binds": True})
                logging.debug("Generated SQL statement: %s", compiled_stmt)

            rows = s.execute(stmt).scalars().all()

            def _iso_ts(dt: datetime.datetime) -> str:
                # Stored naive in UTC
                if dt.tzinfo is None:
                    dt = dt.replace(tzinfo=datetime.timezone.utc)
                return dt.isoformat()

            return [
                {
                    "id": r.id,
                    "ts": _iso_ts(r.ts),
                    "total": r.total,
                    "inside": r.inside,
                    "pi_estimate": r.pi_estimate,
                    "z_score": r.z_score,
                    "square_size": r.square_size,
                    "offset": r.offset,
                }
                for r in rows
            ]

    def delete_runs(self) -> int:
        """Deletes all stored runs. Returns number of rows deleted."""
        with self.SessionLocal() as s:
            # rowcount is unreliable on duckdb; count first
            count = s.scalar(select(func.count()).select_from(Run)) or 0
            s.execute(delete(Run))
            s.commit()
            return int(count)
