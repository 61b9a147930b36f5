"""Console player entry point.

Reads ``QUIZ_HOST``, ``QUIZ_PORT``, ``QUIZ_TLS`` (1 to enable),
``QUIZ_TLS_CAFILE`` and ``QUIZ_TLS_INSECURE`` (1 to skip verification)
from the environment.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
import sys

from quiz_wire.client.quiz_client import QuizClient, run_console_client
from quiz_wire.constants.network_constants import DEFAULT_PORT, DEFAULT_TLS_PORT
from quiz_wire.server.transport import create_client_context
from quiz_wire.utils.logging_config import configure_logging

_TRUTHY = {"1", "true", "yes", "on"}


def main() -> None:
    logger = configure_logging(level=logging.WARNING)
    use_tls = os.environ.get("QUIZ_TLS", "").lower() in _TRUTHY
    host = os.environ.get("QUIZ_HOST", "localhost")
    port = int(os.environ.get("QUIZ_PORT", DEFAULT_TLS_PORT if use_tls else DEFAULT_PORT))
    context = None
    if use_tls:
        cafile = os.environ.get("QUIZ_TLS_CAFILE")
        context = create_client_context(
            cafile=Path(cafile) if cafile else None,
            verify=os.environ.get("QUIZ_TLS_INSECURE", "").lower() not in _TRUTHY,
        )

    try:
        client = QuizClient.connect(host, port, tls_context=context)
    except OSError as exc:
        logger.error("Could not connect to %s:%d: %s", host, port, exc)
        sys.exit(1)

    print("=== QUIZ GAME ===")
    with client:
        name = input("Your name: ")
        run_console_client(client, name)


if __name__ == "__main__":
    main()
