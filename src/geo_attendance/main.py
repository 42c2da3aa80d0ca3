from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables

logger = logging.getLogger(__name__)


def create_app(*, settings: Optional[Any] = None, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    if settings is None:
        settings_module = get_settings_module()
        settings = importlib.import_module(settings_module)

    logging.basicConfig(
        level=getattr(logging, str(getattr(settings, "LOG_LEVEL", "INFO")).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    storage = str(getattr(settings, "STORAGE", "memory")).lower()
    if storage == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
        db_config = getattr(settings, "DB_CONFIG")
        schema_path = Path(__file__).resolve().parents[2] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

    container = container or build_container(settings=settings)
    app.extensions["geo_attendance"] = container

    register_attendance(app, container)

    logger.info("geo-attendance started (storage=%s)", storage)
    return app
