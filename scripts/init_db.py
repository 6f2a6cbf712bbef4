from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src" / "worktime_control"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from config import get_settings_module

from worktime_control.database.bootstrap import apply_schema, ensure_company_config, list_tables


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    company_id = getattr(settings, "SEED_COMPANY_ID", "")
    if company_id:
        ensure_company_config(db_config, company_id=company_id)

    tables = list_tables(db_config)
    print(
        "OK: Applied schema.sql -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(tables={len(tables)})"
    )


if __name__ == "__main__":
    main()
