"""Health and readiness check routes."""

import logging

import azure.functions as func
from fastapi import APIRouter

from config import Settings, settings
from routes.responses import Result, to_http_response, to_json_response

logger = logging.getLogger(__name__)

bp = func.Blueprint()
router = APIRouter()

SERVICE_NAME = "planet-weather-api"


def readiness(config: Settings = settings) -> Result:
    """Lightweight readiness check — no external calls."""
    return 200, {"status": "ok", "service": SERVICE_NAME, "commit": config.git_sha}


def health(config: Settings = settings) -> Result:
    """Report configuration gaps that would make requests fail."""
    missing = config.validate()
    result = {
        "status": "degraded" if missing else "ok",
        "service": SERVICE_NAME,
        "commit": config.git_sha,
        "environment": config.environment,
    }
    if missing:
        logger.warning("Health check found missing env vars: %s", ", ".join(missing))
        result["missing_config"] = missing
    return 200, result


@bp.route(route="ready", methods=["GET"])
async def ready(req: func.HttpRequest) -> func.HttpResponse:
    return to_http_response(readiness())


@bp.route(route="health", methods=["GET"])
async def health_check(req: func.HttpRequest) -> func.HttpResponse:
    return to_http_response(health())


@router.get("/ready")
async def ready_endpoint():
    return to_json_response(readiness())


@router.get("/health")
async def health_endpoint():
    return to_json_response(health())
