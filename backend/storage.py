"""
In-process repository for the dashboard.

Every record kind lives in its own dict keyed by id, and a single counter hands
out ids across all of them. Nothing survives a restart.
"""
from __future__ import annotations

from datetime import datetime
import logging
import threading
from typing import Any

import pandas as pd

from backend import analytics, seed
from backend.config import DASHBOARD_ROW_LIMIT
from backend.schemas import (
    Activity,
    ActivityCreate,
    ChartData,
    ChartDataCreate,
    DataRow,
    DataRowCreate,
    Dataset,
    DatasetCreate,
    Metric,
    MetricCreate,
    Region,
    RegionCreate,
    Transaction,
    TransactionCreate,
    User,
    UserCreate,
)

logger = logging.getLogger(__name__)


def _is_filter_active(value: str | None) -> bool:
    return bool(value) and value != "all"


class DuplicateUsernameError(ValueError):
    def __init__(self, username: str) -> None:
        super().__init__(f"Username {username!r} is already taken")


class MemStorage:
    def __init__(self, seed_demo: bool = True):
        self._lock = threading.RLock()
        self._seed_demo = seed_demo
        self._clear()
        if seed_demo:
            self._seed()

    def _clear(self) -> None:
        self.users: dict[int, User] = {}
        self.transactions: dict[int, Transaction] = {}
        self.metrics: dict[int, Metric] = {}
        self.chart_data: dict[int, ChartData] = {}
        self.regions: dict[int, Region] = {}
        self.activities: dict[int, Activity] = {}
        self.datasets: dict[int, Dataset] = {}
        self.data_rows: dict[int, DataRow] = {}
        self._current_id = 1

    def _seed(self) -> None:
        now = datetime.now()
        for transaction in seed.sample_transactions():
            self.create_transaction(transaction)
        for metric in seed.sample_metrics(now):
            self.create_metric(metric)
        for region in seed.sample_regions():
            self.create_region(region)
        for activity in seed.sample_activities(now):
            self.create_activity(activity)
        for point in seed.sample_chart_data(now):
            self.create_chart_data(point)

    def reset(self) -> None:
        with self._lock:
            self._clear()
            if self._seed_demo:
                self._seed()

    def _next_id(self) -> int:
        with self._lock:
            new_id = self._current_id
            self._current_id += 1
            return new_id

    def _snapshot(self, records: dict[int, Any]) -> list[Any]:
        with self._lock:
            return list(records.values())

    # Users

    def get_user(self, user_id: int) -> User | None:
        with self._lock:
            return self.users.get(user_id)

    def get_user_by_username(self, username: str) -> User | None:
        return next((user for user in self._snapshot(self.users) if user.username == username), None)

    def create_user(self, user: UserCreate) -> User:
        with self._lock:
            if self.get_user_by_username(user.username) is not None:
                raise DuplicateUsernameError(user.username)
            record = User(id=self._next_id(), **user.model_dump())
            self.users[record.id] = record
            return record

    # Transactions

    def _filter_transactions(
        self,
        category: str | None = None,
        region: str | None = None,
        search: str | None = None,
    ) -> list[Transaction]:
        transactions = self._snapshot(self.transactions)

        if _is_filter_active(category):
            transactions = [t for t in transactions if t.category == category]

        if _is_filter_active(region):
            transactions = [t for t in transactions if t.region == region]

        if search:
            needle = search.lower()
            transactions = [
                t for t in transactions
                if needle in t.customer_name.lower() or needle in t.order_id.lower()
            ]

        return transactions

    def get_transactions(
        self,
        category: str | None = None,
        region: str | None = None,
        search: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[Transaction]:
        transactions = self._filter_transactions(category, region, search)
        transactions.sort(key=lambda t: t.date, reverse=True)
        return transactions[offset:offset + limit]

    def get_transaction_count(
        self,
        category: str | None = None,
        region: str | None = None,
        search: str | None = None,
    ) -> int:
        return len(self._filter_transactions(category, region, search))

    def create_transaction(self, transaction: TransactionCreate) -> Transaction:
        with self._lock:
            record = Transaction(id=self._next_id(), **transaction.model_dump())
            self.transactions[record.id] = record
            return record

    # Metrics and chart data

    def get_metrics(self) -> list[Metric]:
        return self._snapshot(self.metrics)

    def create_metric(self, metric: MetricCreate) -> Metric:
        with self._lock:
            record = Metric(id=self._next_id(), **metric.model_dump())
            self.metrics[record.id] = record
            return record

    def get_chart_data(self, chart_type: str) -> list[ChartData]:
        return [point for point in self._snapshot(self.chart_data) if point.type == chart_type]

    def create_chart_data(self, point: ChartDataCreate) -> ChartData:
        with self._lock:
            record = ChartData(id=self._next_id(), **point.model_dump())
            self.chart_data[record.id] = record
            return record

    # Regions and activities

    def get_top_regions(self) -> list[Region]:
        return sorted(
            self._snapshot(self.regions),
            key=lambda region: analytics.to_number(region.revenue) or 0.0,
            reverse=True,
        )

    def create_region(self, region: RegionCreate) -> Region:
        with self._lock:
            record = Region(id=self._next_id(), **region.model_dump())
            self.regions[record.id] = record
            return record

    def get_recent_activities(self, limit: int = 10) -> list[Activity]:
        activities = sorted(self._snapshot(self.activities), key=lambda a: (a.timestamp, a.id), reverse=True)
        return activities[:limit]

    def create_activity(self, activity: ActivityCreate) -> Activity:
        with self._lock:
            record = Activity(id=self._next_id(), **activity.model_dump())
            self.activities[record.id] = record
            return record

    # Datasets

    def get_datasets(self) -> list[Dataset]:
        return sorted(self._snapshot(self.datasets), key=lambda d: (d.uploaded_at, d.id), reverse=True)

    def get_dataset(self, dataset_id: int) -> Dataset | None:
        with self._lock:
            return self.datasets.get(dataset_id)

    def create_dataset(self, dataset: DatasetCreate) -> Dataset:
        with self._lock:
            record = Dataset(id=self._next_id(), **dataset.model_dump())
            self.datasets[record.id] = record
            return record

    def delete_dataset(self, dataset_id: int) -> bool:
        with self._lock:
            self.delete_data_rows(dataset_id)
            return self.datasets.pop(dataset_id, None) is not None

    # Data rows

    def _rows_for(self, dataset_id: int) -> list[DataRow]:
        rows = [row for row in self._snapshot(self.data_rows) if row.dataset_id == dataset_id]
        rows.sort(key=lambda row: row.row_index)
        return rows

    def get_data_rows(self, dataset_id: int, limit: int = 100, offset: int = 0) -> list[DataRow]:
        return self._rows_for(dataset_id)[offset:offset + limit]

    def get_data_row_count(self, dataset_id: int) -> int:
        return sum(1 for row in self._snapshot(self.data_rows) if row.dataset_id == dataset_id)

    def create_data_row(self, data_row: DataRowCreate) -> DataRow:
        with self._lock:
            record = DataRow(id=self._next_id(), **data_row.model_dump())
            self.data_rows[record.id] = record
            return record

    def create_data_rows(self, dataset_id: int, records: list[dict[str, Any]]) -> int:
        created_at = datetime.now()
        with self._lock:
            for index, data in enumerate(records):
                row_id = self._next_id()
                self.data_rows[row_id] = DataRow(
                    id=row_id,
                    dataset_id=dataset_id,
                    row_index=index,
                    data=data,
                    created_at=created_at,
                )
        return len(records)

    def delete_data_rows(self, dataset_id: int) -> bool:
        with self._lock:
            stale = [row_id for row_id, row in self.data_rows.items() if row.dataset_id == dataset_id]
            for row_id in stale:
                del self.data_rows[row_id]
        return True

    # Derived dashboard data

    def _dashboard_sample(self, dataset_id: int) -> tuple[Dataset | None, list[dict[str, Any]]]:
        dataset = self.get_dataset(dataset_id)
        if dataset is None:
            return None, []
        rows = self.get_data_rows(dataset_id, limit=DASHBOARD_ROW_LIMIT)
        return dataset, [row.data for row in rows]

    def generate_metrics_from_dataset(self, dataset_id: int) -> list[Metric]:
        dataset, rows = self._dashboard_sample(dataset_id)
        if dataset is None or not rows:
            return []

        generated = analytics.generate_metrics(dataset.columns, rows, total_rows=dataset.row_count)
        return [Metric(id=self._next_id(), **metric.model_dump()) for metric in generated]

    def generate_charts_from_dataset(self, dataset_id: int) -> dict[str, list[ChartData]]:
        empty: dict[str, list[ChartData]] = {"revenue": [], "category": [], "distribution": []}
        dataset, rows = self._dashboard_sample(dataset_id)
        if dataset is None or not rows:
            return empty

        generated = analytics.generate_charts(dataset.columns, rows)
        return {
            kind: [ChartData(id=self._next_id(), **point.model_dump()) for point in points]
            for kind, points in generated.items()
        }

    def profile_dataset(self, dataset_id: int) -> list[dict[str, Any]] | None:
        dataset = self.get_dataset(dataset_id)
        if dataset is None:
            return None
        rows = [row.data for row in self._rows_for(dataset_id)]
        return analytics.profile_columns(dataset.columns, rows)

    def export_dataset_csv(self, dataset_id: int) -> str | None:
        dataset = self.get_dataset(dataset_id)
        if dataset is None:
            return None
        names = [col.name for col in dataset.columns]
        records = [row.data for row in self._rows_for(dataset_id)]
        frame = pd.DataFrame.from_records(records, columns=names) if records else pd.DataFrame(columns=names)
        return frame.to_csv(index=False)


storage = MemStorage()
