"""Entry point for running a Celery worker that consumes notification tasks.

Equivalent to ``celery -A infrastructure.tasks worker -Q notifications,default``.
"""
from __future__ import annotations

from .config.celery import celery_app


def main() -> None:
    celery_app.worker_main(
        argv=[
            "worker",
            "--loglevel=INFO",
            "--queues=notifications,default",
            "--hostname=orders-worker@%h",
        ]
    )


if __name__ == "__main__":
    main()
