#!/usr/bin/env python3
"""
PixelShelf Worker Runner

Starts a Celery worker for the maintenance queue, optionally with the
embedded beat scheduler that runs the daily notification cleanup.

Usage:
    python workers.py [--beat] [--log-level INFO]
"""

import logging
import argparse

from pixelshelf.core.celery_app import get_celery_app

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="PixelShelf Worker Runner")
    parser.add_argument("--log-level",
                     choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                     default="INFO",
                     help="Set the logging level")
    parser.add_argument("--beat", action="store_true", help="Run the beat scheduler in the worker")
    parser.add_argument("--concurrency", type=int, default=None, help="Override worker concurrency")

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=[logging.StreamHandler()]
    )

    logger = logging.getLogger("worker")
    logger.info("Starting PixelShelf worker process")

    argv = ["worker", f"--loglevel={args.log_level}", "--queues=maintenance,celery"]
    if args.beat:
        argv.append("--beat")
    if args.concurrency:
        argv.append(f"--concurrency={args.concurrency}")
    get_celery_app().worker_main(argv)
