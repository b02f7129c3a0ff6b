"""Liveness and readiness probes."""

from __future__ import annotations

import logging
from typing import Callable, Mapping

from flask import Flask

logger = logging.getLogger(__name__)

HealthCheck = Callable[[], object]


def register_probes(app: Flask, checks: Mapping[str, HealthCheck]) -> None:
    """Add ``/api/health/live`` and ``/api/health/ready`` to ``app``.

    The readiness probe runs ``checks`` in order and answers 503 as soon as
    one of them raises.
    """

    def live():
        return "", 200

    def ready():
        for name, check in checks.items():
            try:
                check()
            except Exception as err:
                logger.error("%s is not ready: %s", name, err)
                return "", 503
        return "", 200

    app.add_url_rule("/api/health/live", "health_live", live, methods=["GET"])
    app.add_url_rule("/api/health/ready", "health_ready", ready, methods=["GET"])