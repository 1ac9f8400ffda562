from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


def _text_or_empty(value: Any) -> str:
    return "" if value is None else str(value)


def _int_or_zero(value: Any) -> int:
    return 0 if value is None else value


# --- Display rows (NULL -> "" / 0 at the mapping boundary) ---

class TaxRateRow(BaseModel):
    id: int
    tax_category_id: int
    start_date: str
    end_date: str
    rate_percent: Decimal
    model_config = ConfigDict(from_attributes=True)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _dates_as_text(cls, value: Any) -> str:
        return _text_or_empty(value)


class GateConfigRow(BaseModel):
    id: int
    engine: str
    max_workers: int
    cache_days: int
    config: str
    model_config = ConfigDict(from_attributes=True)

    @field_validator("engine", "config", mode="before")
    @classmethod
    def _null_text(cls, value: Any) -> str:
        return _text_or_empty(value)

    @field_validator("max_workers", "cache_days", mode="before")
    @classmethod
    def _null_int(cls, value: Any) -> int:
        return _int_or_zero(value)


class GateRow(BaseModel):
    id: int
    instance_id: int
    group_id: int
    supplier_id: int
    name: str
    code_name: str
    engine_id: int
    throughput_queries: int
    connection: str
    billing_account_id: int
    price_list_id: int
    type: str
    linked_mnp_account_id: int
    status: str
    insert_dt: str
    status_dt: str
    setup_date: str
    model_config = ConfigDict(from_attributes=True)

    @field_validator(
        "name", "code_name", "connection", "type", "status",
        "insert_dt", "status_dt", "setup_date",
        mode="before",
    )
    @classmethod
    def _null_text(cls, value: Any) -> str:
        return _text_or_empty(value)

    @field_validator(
        "instance_id", "group_id", "supplier_id", "engine_id", "throughput_queries",
        "billing_account_id", "price_list_id", "linked_mnp_account_id",
        mode="before",
    )
    @classmethod
    def _null_int(cls, value: Any) -> int:
        return _int_or_zero(value)


# --- JSON export ---

class GateConfigExport(BaseModel):
    id: int
    engine: str | None = None
    max_workers: int | None = None
    cache_days: int | None = None
    # Absent from the output unless the stored config text was non-empty.
    config: dict[str, Any] | None = None

    def to_json_dict(self) -> dict[str, Any]:
        data = self.model_dump()
        if self.config is None:
            del data["config"]
        return data


# --- Page view-model ---

class PageView(BaseModel):
    version: str
    rows: list
    page: int
    page_size: int
    total: int
    total_pages: int
    prev_page: int
    next_page: int
    sort: str
    dir: str
    filters: dict[str, str]
    base_query_prefix: str
