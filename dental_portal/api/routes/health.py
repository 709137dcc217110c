import logging

from fastapi import APIRouter, Request
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request):
    try:
        reachable = request.app.state.database.ping()
    except SQLAlchemyError:
        logger.exception("Database ping failed")
        reachable = False
    out = {"status": "ok" if reachable else "degraded", "database": {"reachable": bool(reachable)}}
    return {"request_id": request.state.request_id, "data": out, "error": None}
