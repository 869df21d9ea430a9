#!/usr/bin/env python
"""
Open the airtime sales desk in Streamlit.

Usage:
    python scripts/run_app.py [extra streamlit options]
"""
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT / 'src'))

from airtime_sales.config.settings import Settings

UI_MODULE = PROJECT_ROOT / 'src' / 'airtime_sales' / 'ui' / 'app_streamlit.py'


def main(argv: list[str]) -> int:
    settings = Settings.load(PROJECT_ROOT)
    settings.data_file.parent.mkdir(parents=True, exist_ok=True)
    settings.export_dir.mkdir(parents=True, exist_ok=True)

    print(f"Snapshot: {settings.data_file}, autosave every {settings.autosave_seconds}s")
    cmd = [sys.executable, '-m', 'streamlit', 'run', str(UI_MODULE), *argv]
    try:
        return subprocess.run(cmd, cwd=str(PROJECT_ROOT)).returncode
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
