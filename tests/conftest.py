from io import BytesIO

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from backend.main import app
from backend.storage import storage


@pytest.fixture(autouse=True)
def _fresh_storage():
    """Every test starts from the seeded demo data and no uploads."""
    storage.reset()
    yield
    storage.reset()


@pytest.fixture
def client():
    return TestClient(app)


SALES_CSV = (
    "Date,Region,Revenue,Units\n"
    "2024-01-02,North,100,1\n"
    "2024-01-01,South,250.5,3\n"
    "2024-01-02,North,50,2\n"
    "2024-01-03,East,0,4\n"
    "2024-01-03,,20,1\n"
)


@pytest.fixture
def sales_csv() -> bytes:
    return SALES_CSV.encode("utf-8")


def _xlsx_bytes(rows: list[list]) -> bytes:
    buffer = BytesIO()
    pd.DataFrame(rows).to_excel(buffer, index=False, header=False, engine="openpyxl")
    return buffer.getvalue()


@pytest.fixture
def make_xlsx():
    return _xlsx_bytes


@pytest.fixture
def upload(client):
    def _upload(content: bytes, filename: str = "sales.csv", name: str = "Sales", content_type: str = "text/csv"):
        return client.post(
            "/api/upload",
            files={"file": (filename, content, content_type)},
            data={"name": name},
        )

    return _upload
