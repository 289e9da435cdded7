from __future__ import annotations

import logging

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from blog_api.db.session import DbSession

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(session: DbSession) -> dict:
    """Health check endpoint.

    Reports "ok" together with whether the database answered a trivial query.
    Used by load balancers and monitoring systems to determine service health.
    """
    try:
        session.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as exc:
        logger.warning("health.database_unavailable", extra={"error_type": type(exc).__name__})
        database = "unavailable"

    return {"status": "ok", "database": database}
