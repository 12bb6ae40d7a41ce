#!/usr/bin/env python3
"""
Start Celery worker (met beat) voor quotebook
"""
import sys
from pathlib import Path

# Voeg project root toe aan Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from quotebook.celery_app import celery_app  # noqa: E402

if __name__ == "__main__":
    # worker + embedded beat: één proces draait de dagelijkse notificatie-sweep
    celery_app.worker_main([
        "worker",
        "--beat",
        "--loglevel=info",
        "--concurrency=2",
        "--hostname=quotebook-worker@%h",
        "--without-gossip",
        "--without-mingle",
    ])
