#!/usr/bin/env python3
# =============================================================================
# scripts/start_worker.py - Celery Worker Entry Point
# =============================================================================
# Starts a Celery worker that consumes both the default and listing_pipelines queues.
#
# Usage:
#   python scripts/start_worker.py
#
#   # Or use Celery CLI directly
#   celery -A workers.celery_app worker --loglevel=info -Q default,listing_pipelines
#
# Prerequisites:
#   - Redis must be running
#   - Environment variables must be set (.env file)
#   - The project is installed (pip install -e .)
# =============================================================================

from workers.celery_app import celery_app


def main():
    """Start the Celery worker."""
    print("=" * 60)
    print("SellerHub Celery Worker")
    print("=" * 60)
    print()
    print("Starting worker...")
    print("Press Ctrl+C to stop")
    print()

    celery_app.worker_main([
        "worker",
        "--loglevel=info",
        "--concurrency=2",
        "-Q", "default,listing_pipelines",
    ])


if __name__ == "__main__":
    main()
