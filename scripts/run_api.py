#!/usr/bin/env python
"""
Serve the airtime sales API with uvicorn.

Usage:
    python scripts/run_api.py

AIRTIME_API_HOST / AIRTIME_API_PORT choose the bind address; the snapshot
location comes from the usual AIRTIME_DATA_FILE setting.
"""
import os
import sys
from pathlib import Path

import uvicorn

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT / 'src'))

from airtime_sales.config.settings import Settings


def main():
    settings = Settings.load(PROJECT_ROOT)
    settings.data_file.parent.mkdir(parents=True, exist_ok=True)
    host = os.environ.get("AIRTIME_API_HOST", "127.0.0.1")
    port = int(os.environ.get("AIRTIME_API_PORT", "8000"))

    print(f"{settings.station_name} API on http://{host}:{port} (data: {settings.data_file})")
    uvicorn.run(
        "airtime_sales.api.main:app",
        host=host,
        port=port,
        reload=True,
        reload_dirs=[str(PROJECT_ROOT / 'src')],
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
