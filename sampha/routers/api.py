"""API namespace: service status and the /api/* not-found boundary."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse

from sampha.config import settings
from sampha.schemas import StatusMessage

logger = logging.getLogger(__name__)


async def log_routing(request: Request):
    logger.info(f"routing request to {request.url.path[len('/api'):] or '/'}")


router = APIRouter(prefix="/api", tags=["API"], dependencies=[Depends(log_routing)])

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


def status_payload(service_name: str) -> dict:
    return StatusMessage(message=f"{service_name} is running").model_dump()


@router.api_route("/", methods=ALL_METHODS, response_model=StatusMessage)
async def hello(request: Request):
    """Report that the service is up."""
    logger.info("handling hello world request")
    service_name = getattr(request.app.state, "service_name", settings.SERVICE_NAME)
    try:
        return JSONResponse(content=status_payload(service_name))
    except (TypeError, ValueError) as e:
        logger.error(f"failed to marshal response: {e}")
        raise HTTPException(status_code=500, detail="failed to marshal response")


@router.api_route("", methods=ALL_METHODS, include_in_schema=False)
async def api_root_redirect():
    return RedirectResponse(url="/api/", status_code=301)


@router.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
async def unknown_endpoint(path: str):
    # Keeps /api/* out of the SPA catch-all
    logger.warning(f"unknown endpoint requested: /{path}")
    raise HTTPException(status_code=404, detail="Not Found")
