from __future__ import annotations

import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.qr_attendance.qr_attendance.main import create_app

app = create_app()


if __name__ == "__main__":
    # use_reloader=False: the reloader would start a second sweeper in the child process.
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=app.config["DEBUG"], use_reloader=False)
