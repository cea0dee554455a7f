#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Uses the in-memory store persisted to backend/dev_data.json unless
STORE_BACKEND / DATA_FILE say otherwise.
"""
import os
from pathlib import Path
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

os.environ.setdefault("DATA_FILE", str(backend_dir / "dev_data.json"))

import uvicorn

if __name__ == "__main__":
    print("Starting development server at http://localhost:8000 (docs at /docs)")
    uvicorn.run(
        "lesson_scheduler.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info"
    )
