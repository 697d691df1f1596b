"""
main.py

Entry point for the Crew Planning & Assignment Scheduling API.

Configures logging, wires the in-memory infrastructure into the FastAPI app
and starts uvicorn.

Usage
-----
    # Option 1 — run directly
    python main.py

    # Option 2 — run via uvicorn CLI (recommended for development)
    uvicorn main:app --reload --port 8000

    # Option 3 — override settings through the environment
    CREWPLAN_HOST=0.0.0.0 CREWPLAN_PORT=8080 CREWPLAN_LOG_LEVEL=debug python main.py

Once running, open your browser at:
    http://localhost:8000/docs      ← Swagger UI  (try every endpoint interactively)
    http://localhost:8000/redoc     ← ReDoc
    http://localhost:8000/health    ← liveness check

Quick-start walkthrough (use Swagger UI or curl)
-------------------------------------------------
Send `X-User-Id` and `X-User-Email` headers on every write so the change is
recorded in the audit log.

1.  POST  /api/v1/crew-roles             — add roles (Captain, Deckhand, ...)
2.  POST  /api/v1/crew                   — add crew members
3.  POST  /api/v1/clients                — add a client
4.  POST  /api/v1/projects               — create a project for the client
5.  POST  /api/v1/assignments/conflicts  — check a proposed booking
6.  POST  /api/v1/assignments            — book crew (409 on overlap, ?force=true to override)
7.  GET   /api/v1/dashboard/metrics      — summary counters
8.  GET   /api/v1/audit?table=assignments — browse the audit log
"""

import logging
import sys

import uvicorn

from config import settings

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

from api import app, get_uow  # noqa: E402
from infrastructure import InMemoryUnitOfWork  # noqa: E402


# ---------------------------------------------------------------------------
# Wire the concrete Unit of Work into the FastAPI dependency system.
# To swap databases, replace InMemoryUnitOfWork with your SQL implementation.
# ---------------------------------------------------------------------------

app.dependency_overrides[get_uow] = lambda: InMemoryUnitOfWork()


if __name__ == "__main__":
    logger.info("Starting %s on %s:%s", settings.app_name, settings.host, settings.port)
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,          # auto-reload on file changes during development
        log_level=settings.log_level.lower(),
    )
