from __future__ import annotations

from datetime import datetime
import logging
import math
import re

from fastapi import FastAPI, File, Form, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.requests import Request

from backend.config import ALLOW_ORIGINS, LOG_LEVEL_NAME, MAX_UPLOAD_BYTES, TYPE_SAMPLE_ROWS, configure_logging
from backend.ingest import SpreadsheetError, infer_schema, parse_upload, rows_to_records
from backend.schemas import (
    Activity,
    ActivityCreate,
    ChartData,
    DashboardCharts,
    DataRowPage,
    Dataset,
    DatasetCreate,
    DatasetDashboard,
    DatasetProfile,
    MessageResponse,
    Metric,
    Region,
    TransactionPage,
    UploadResult,
)
from backend.storage import storage

configure_logging()
logger = logging.getLogger(__name__)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)

app = FastAPI(title="DashVisuals API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _dataset_not_found() -> JSONResponse:
    return _error(404, "Dataset not found")


def _total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit)


def _export_name(dataset: Dataset) -> str:
    stem = dataset.filename.rsplit(".", 1)[0] or dataset.name
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", stem.strip()).strip("_").lower() + ".csv"


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error")


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# Demo dashboard


@app.get("/api/metrics", response_model=list[Metric])
def list_metrics():
    return storage.get_metrics()


@app.get("/api/transactions", response_model=TransactionPage)
def list_transactions(
    category: str | None = None,
    region: str | None = None,
    search: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
):
    offset = (page - 1) * limit
    transactions = storage.get_transactions(category, region, search, limit=limit, offset=offset)
    total = storage.get_transaction_count(category, region, search)
    return TransactionPage(
        transactions=transactions,
        total=total,
        page=page,
        total_pages=_total_pages(total, limit),
    )


@app.get("/api/chart-data/{chart_type}", response_model=list[ChartData])
def chart_data(chart_type: str):
    return storage.get_chart_data(chart_type)


@app.get("/api/top-regions", response_model=list[Region])
def top_regions():
    return storage.get_top_regions()


@app.get("/api/activities", response_model=list[Activity])
def recent_activities(limit: int | None = Query(None, ge=1)):
    if limit is None:
        return storage.get_recent_activities()
    return storage.get_recent_activities(limit)


# Uploaded datasets


@app.get("/api/datasets", response_model=list[Dataset])
def list_datasets():
    return storage.get_datasets()


@app.get("/api/datasets/{dataset_id}", response_model=Dataset)
def get_dataset(dataset_id: int):
    dataset = storage.get_dataset(dataset_id)
    if dataset is None:
        return _dataset_not_found()
    return dataset


@app.delete("/api/datasets/{dataset_id}", response_model=MessageResponse)
def delete_dataset(dataset_id: int):
    if not storage.delete_dataset(dataset_id):
        return _dataset_not_found()

    storage.create_activity(ActivityCreate(message="Dataset deleted", type="info", timestamp=datetime.now()))
    logger.info("dataset_deleted: id=%s", dataset_id)
    return MessageResponse(message="Dataset deleted successfully")


@app.get("/api/datasets/{dataset_id}/data", response_model=DataRowPage)
def dataset_rows(
    dataset_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1),
):
    offset = (page - 1) * limit
    rows = storage.get_data_rows(dataset_id, limit=limit, offset=offset)
    total = storage.get_data_row_count(dataset_id)
    return DataRowPage(rows=rows, total=total, page=page, total_pages=_total_pages(total, limit))


@app.get("/api/datasets/{dataset_id}/dashboard", response_model=DatasetDashboard)
def dataset_dashboard(dataset_id: int):
    metrics = storage.generate_metrics_from_dataset(dataset_id)
    charts = storage.generate_charts_from_dataset(dataset_id)
    return DatasetDashboard(metrics=metrics, charts=DashboardCharts(**charts))


@app.get("/api/datasets/{dataset_id}/profile", response_model=DatasetProfile)
def dataset_profile(dataset_id: int):
    dataset = storage.get_dataset(dataset_id)
    if dataset is None:
        return _dataset_not_found()
    return DatasetProfile(dataset=dataset, columns=storage.profile_dataset(dataset_id) or [])


@app.get("/api/datasets/{dataset_id}/export")
def export_dataset(dataset_id: int) -> Response:
    dataset = storage.get_dataset(dataset_id)
    if dataset is None:
        return _dataset_not_found()

    return Response(
        content=storage.export_dataset_csv(dataset_id),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={_export_name(dataset)}"},
    )


@app.post("/api/upload", response_model=UploadResult)
async def upload_dataset(
    file: UploadFile | None = File(None),
    name: str | None = Form(None),
):
    if file is None or not file.filename:
        return _error(400, "No file uploaded")

    if not name or not name.strip():
        return _error(400, "Dataset name is required")

    content = await file.read()
    if len(content) > MAX_UPLOAD_BYTES:
        logger.info("upload_rejected: name=%r reason=too_large bytes=%d", name, len(content))
        return _error(413, f"File is too large. Maximum allowed size is {MAX_UPLOAD_BYTES / (1024 * 1024):g} MB.")

    try:
        headers, rows = parse_upload(file.filename, file.content_type, content)
    except SpreadsheetError as exc:
        logger.info("upload_rejected: name=%r file=%r reason=%s", name, file.filename, exc)
        return _error(400, str(exc))

    columns = infer_schema(headers, rows, sample_size=TYPE_SAMPLE_ROWS)
    dataset = storage.create_dataset(
        DatasetCreate(
            name=name,
            filename=file.filename,
            uploaded_at=datetime.now(),
            columns=columns,
            row_count=len(rows),
            file_size=len(content),
        )
    )
    storage.create_data_rows(dataset.id, rows_to_records(headers, rows))

    storage.create_activity(
        ActivityCreate(
            message=f'Dataset "{name}" uploaded with {len(rows)} rows',
            type="success",
            timestamp=datetime.now(),
        )
    )
    logger.info(
        "upload_accepted: id=%s name=%r rows=%d columns=%d",
        dataset.id,
        name,
        len(rows),
        len(columns),
    )

    return UploadResult(message="File uploaded successfully", dataset=dataset, rows_processed=len(rows))


@app.post("/api/refresh", response_model=MessageResponse)
def refresh():
    return MessageResponse(message="Data refreshed successfully")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
