"""SQLAlchemy ORM models for processing jobs and persisted anomalies."""

from datetime import datetime

from sqlalchemy import JSON, BigInteger, Boolean, DateTime, Float, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")
# SQLite only autoincrements INTEGER primary keys
IdType = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    pass


class ProcessingJobDB(Base):
    __tablename__ = "processing_jobs"

    job_id: Mapped[str] = mapped_column(String, primary_key=True)
    log_file_id: Mapped[str] = mapped_column(String, index=True)
    file_name: Mapped[str] = mapped_column(String, default="")
    file_size_bytes: Mapped[int] = mapped_column(BigInteger, default=0)
    detection_method: Mapped[str] = mapped_column(String)
    status: Mapped[str] = mapped_column(String, index=True)
    progress: Mapped[int] = mapped_column(Integer, default=0)
    total_entries: Mapped[int] = mapped_column(Integer, default=0)
    processed_entries: Mapped[int] = mapped_column(Integer, default=0)
    anomalies_found: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    analysis_time_ms: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)


class AnomalyDB(Base):
    __tablename__ = "anomalies"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    anomaly_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    job_id: Mapped[str] = mapped_column(String, index=True)
    anomaly_type: Mapped[str] = mapped_column(String, index=True)
    is_anomaly: Mapped[bool] = mapped_column(Boolean, default=True)
    risk_score: Mapped[float] = mapped_column(Float, index=True)
    confidence: Mapped[float] = mapped_column(Float)
    severity: Mapped[str] = mapped_column(String)
    detection_method: Mapped[str] = mapped_column(String, index=True)
    description: Mapped[str] = mapped_column(Text, default="")
    explanation: Mapped[str] = mapped_column(Text, default="")
    recommendations: Mapped[list] = mapped_column(JSONType, default=list)
    trigger_rules: Mapped[list] = mapped_column(JSONType, default=list)
    details: Mapped[dict] = mapped_column(JSONType, default=dict)
    log_entry: Mapped[dict] = mapped_column(JSONType)
    source_address: Mapped[str] = mapped_column(String, index=True)
    detected_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
