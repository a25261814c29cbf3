from __future__ import annotations

import logging
import os


def _load_env_file() -> None:
    env_path = os.path.join(os.path.dirname(__file__), ".env")
    if not os.path.exists(env_path):
        return

    try:
        with open(env_path, "r", encoding="utf-8") as file:
            for raw_line in file:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip().strip("\"").strip("'")
                if key and key not in os.environ:
                    os.environ[key] = value
    except OSError:
        # If .env can't be read, continue with system env vars.
        return


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning("ignoring non-integer %s=%r", name, raw)
        return default


_load_env_file()

LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)

MAX_UPLOAD_BYTES = _int_env("MAX_UPLOAD_BYTES", 10 * 1024 * 1024)  # 10 MB
TYPE_SAMPLE_ROWS = _int_env("TYPE_SAMPLE_ROWS", 100)
DASHBOARD_ROW_LIMIT = _int_env("DASHBOARD_ROW_LIMIT", 100)

_origins_env = os.getenv("ALLOW_ORIGINS", "*")
ALLOW_ORIGINS = [origin.strip() for origin in _origins_env.split(",") if origin.strip()] or ["*"]


def configure_logging() -> None:
    logging.basicConfig(level=LOG_LEVEL)
    logging.getLogger("backend").setLevel(LOG_LEVEL)
