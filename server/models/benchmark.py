"""SQLModel tables for the benchmark cache and the transient workload."""

from typing import Optional
from sqlmodel import SQLModel, Field


class CachedResult(SQLModel, table=True):
    """Most recent benchmark result, JSON serialized.

    Holds at most one row; a new run replaces it in a single transaction.
    """

    __tablename__ = "test_results_cache"

    id: Optional[int] = Field(default=None, primary_key=True)
    result: str
    timestamp: int  # Unix epoch seconds


class WorkloadRecord(SQLModel, table=True):
    """Row written, read, updated and deleted during a benchmark run."""

    __tablename__ = "comments"

    id: Optional[int] = Field(default=None, primary_key=True)
    author: str
    content: str
    test_session: str = Field(max_length=64)
    timestamp: int
