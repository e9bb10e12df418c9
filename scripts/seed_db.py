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
from college_attendance.database.bootstrap import ensure_persistent_backend, seed_demo_users
from college_attendance.main import settings_from_module


def main() -> None:
    settings = settings_from_module(importlib.import_module(get_settings_module()))
    ensure_persistent_backend(settings)
    container = build_container(settings=settings)

    count = asyncio.run(seed_demo_users(container.store, container.config.collections))
    if container.connection is not None:
        container.connection.close()

    print(f"OK: Seeded {count} demo documents -> {settings.get('STORE_BACKEND')}:{settings.get('MONGODB_DATABASE')}")


if __name__ == "__main__":
    main()
