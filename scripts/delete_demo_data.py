"""Delete leave requests, attendance and notifications of the demo accounts.

User and teacher accounts are kept. Pass user ids as arguments to target
other accounts.
"""

from __future__ import annotations

import asyncio
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from college_attendance.container import build_container
from college_attendance.database.bootstrap import DEMO_USER_IDS, delete_user_data, ensure_persistent_backend
from college_attendance.main import settings_from_module


def main() -> None:
    settings = settings_from_module(importlib.import_module(get_settings_module()))
    ensure_persistent_backend(settings)
    container = build_container(settings=settings)
    user_ids = sys.argv[1:] or list(DEMO_USER_IDS)

    deleted = asyncio.run(delete_user_data(container.store, container.config.collections, user_ids))
    if container.connection is not None:
        container.connection.close()

    for collection, count in deleted.items():
        print(f"[{collection}] deleted {count}")
    print("OK: demo user data deleted (accounts kept)")


if __name__ == "__main__":
    main()
