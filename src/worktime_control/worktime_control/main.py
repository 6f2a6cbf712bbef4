from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.logging_utils import configure_logging
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_company_config, list_tables
from .leave_requests.controller import register as register_leave_requests
from .sessions.controller import register as register_sessions
from .worktime.controller import register as register_worktime

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    db_config = getattr(settings, "DB_CONFIG")
    work_config_backend = getattr(settings, "WORK_CONFIG_BACKEND", "mysql")
    leave_request_backend = getattr(settings, "LEAVE_REQUEST_BACKEND", "memory")
    logger.info(
        "settings=%s work_config=%s leave_requests=%s db=%s@%s:%s/%s",
        settings_module,
        work_config_backend,
        leave_request_backend,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        uses_mysql = "mysql" in (work_config_backend, leave_request_backend)
        if uses_mysql and bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if uses_mysql and bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")

        container = build_container(
            db_config=db_config,
            work_config_backend=work_config_backend,
            leave_request_backend=leave_request_backend,
            enforce_work_start_time=bool(getattr(settings, "ENFORCE_WORK_START_TIME", True)),
            tick_seconds=float(getattr(settings, "SESSION_TICK_SECONDS", 1.0)),
            reconnect_base_delay=float(getattr(settings, "RECONNECT_BASE_DELAY", 1.0)),
            reconnect_max_delay=float(getattr(settings, "RECONNECT_MAX_DELAY", 30.0)),
            reconnect_max_attempts=int(getattr(settings, "RECONNECT_MAX_ATTEMPTS", 0)),
        )

        seed_company = getattr(settings, "SEED_COMPANY_ID", None)
        if seed_company:
            if work_config_backend == "mysql":
                ensure_company_config(db_config, company_id=seed_company)
            else:
                container.config_store.create_default(seed_company)

        if bool(getattr(settings, "START_SESSION_TICKER", True)):
            container.ticker.start()

    app.extensions["worktime_container"] = container

    register_worktime(app, container)
    register_sessions(app, container)
    register_leave_requests(app, container)

    return app
