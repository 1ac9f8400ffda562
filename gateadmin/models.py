"""
ORM mappings for the externally managed tables this application reads.

The application never writes or migrates; the declarations mirror the
existing schema so queries can be composed with SQLAlchemy expressions
(and so the test suite can create the tables on SQLite).
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gateadmin.database import Base


# ---------------------------------------------------------------------------
# Tax rate
# ---------------------------------------------------------------------------
class TaxRate(Base):
    __tablename__ = "sys_tax_rate"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tax_category_id: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    rate_percent: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)


# ---------------------------------------------------------------------------
# Gateway configuration
# ---------------------------------------------------------------------------
class MnpGateConfig(Base):
    __tablename__ = "mnp_gate_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    engine: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    max_workers: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cache_days: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    # Free-form JSON document stored as text.
    config: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


# ---------------------------------------------------------------------------
# Gateway instance (full schema)
# ---------------------------------------------------------------------------
class MnpGate(Base):
    __tablename__ = "mnp_gate"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    instance_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    group_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    supplier_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    code_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    engine_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    throughput_queries: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    connection: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    billing_account_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    price_list_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    linked_mnp_account_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    insert_dt: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    status_dt: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    setup_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
