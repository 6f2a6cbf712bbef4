from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent
for path in (REPO_ROOT, REPO_ROOT / "src" / "worktime_control"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from worktime_control.main import create_app

app = create_app()


if __name__ == "__main__":
    # The reloader would start a second session ticker in the child process.
    app.run(debug=app.config["DEBUG"], use_reloader=False, threaded=True)
