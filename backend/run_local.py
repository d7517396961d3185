#!/usr/bin/env python3
"""
Run the backend locally.

Usage:
    python run_local.py

This will start the API server at http://localhost:8000
- API Docs: http://localhost:8000/docs
- Health Check: http://localhost:8000/health
"""

import sys
import os
from pathlib import Path

# Add backend to path
backend_root = Path(__file__).parent
sys.path.insert(0, str(backend_root))
os.chdir(backend_root.parent)

# Local SQLite database and uploads under ./data
os.environ.setdefault("DATABASE_URL", f"sqlite:///{backend_root.parent}/data/local_dev.db")
os.environ.setdefault("DEBUG", "true")


def main():
    print("=" * 60)
    print("  DocDesk - Local Development Server")
    print("=" * 60)
    print()
    print("  API URL:      http://localhost:8000")
    print("  API Docs:     http://localhost:8000/docs")
    print("  Health Check: http://localhost:8000/health")
    print()
    print("  Press Ctrl+C to stop")
    print("=" * 60)
    print()

    import uvicorn
    uvicorn.run(
        "docdesk.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,  # Auto-reload on code changes
        log_level="info",
    )


if __name__ == "__main__":
    main()
