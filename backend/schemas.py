"""
Record shapes held by the in-memory repository.

Attributes are snake_case in Python and camelCase on the wire, which is what
the dashboard client reads.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ColumnType = Literal["number", "date", "text"]
ChartType = Literal["revenue", "category", "customer", "distribution"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserCreate(CamelModel):
    username: str
    password: str


class User(UserCreate):
    id: int


class TransactionCreate(CamelModel):
    order_id: str
    customer_name: str
    customer_initials: str
    amount: str
    status: Literal["completed", "pending", "failed"]
    date: datetime
    category: str
    region: str


class Transaction(TransactionCreate):
    id: int


class MetricCreate(CamelModel):
    name: str
    value: str
    change: str = "0"
    trend: Literal["up", "down"] = "up"
    date: datetime


class Metric(MetricCreate):
    id: int


class ChartDataCreate(CamelModel):
    type: ChartType
    label: str
    value: str
    date: datetime


class ChartData(ChartDataCreate):
    id: int


class RegionCreate(CamelModel):
    code: str
    name: str
    revenue: str


class Region(RegionCreate):
    id: int


class ActivityCreate(CamelModel):
    message: str
    type: Literal["success", "info", "warning", "error"]
    timestamp: datetime


class Activity(ActivityCreate):
    id: int


class ColumnDefinition(CamelModel):
    name: str
    type: ColumnType
    index: int


class DatasetCreate(CamelModel):
    name: str
    filename: str
    uploaded_at: datetime
    columns: list[ColumnDefinition]
    row_count: int
    file_size: int


class Dataset(DatasetCreate):
    id: int


class DataRowCreate(CamelModel):
    dataset_id: int
    row_index: int
    data: dict[str, Any]
    created_at: datetime


class DataRow(DataRowCreate):
    id: int


class TransactionPage(CamelModel):
    transactions: list[Transaction]
    total: int
    page: int
    total_pages: int


class DataRowPage(CamelModel):
    rows: list[DataRow]
    total: int
    page: int
    total_pages: int


class DashboardCharts(CamelModel):
    revenue: list[ChartData] = Field(default_factory=list)
    category: list[ChartData] = Field(default_factory=list)
    distribution: list[ChartData] = Field(default_factory=list)


class DatasetDashboard(CamelModel):
    metrics: list[Metric]
    charts: DashboardCharts


class ColumnProfile(CamelModel):
    name: str
    type: ColumnType
    missing: int
    unique: int
    example: Any = None
    min: float | None = None
    max: float | None = None
    mean: float | None = None
    sum: float | None = None
    earliest: str | None = None
    latest: str | None = None


class DatasetProfile(CamelModel):
    dataset: Dataset
    columns: list[ColumnProfile]


class UploadResult(CamelModel):
    message: str
    dataset: Dataset
    rows_processed: int


class MessageResponse(CamelModel):
    message: str
