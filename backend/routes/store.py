"""Store route — persist an arbitrary JSON object as an opaque blob."""

import json
import logging

import azure.functions as func
from fastapi import APIRouter, Request

from routes.responses import Result, internal_error, to_http_response, to_json_response
from services.context import ServiceContext, get_context

logger = logging.getLogger(__name__)

bp = func.Blueprint()
router = APIRouter()


def _text(body: bytes) -> str | None:
    return body.decode("utf-8", errors="replace") if body else None


def _reject_constant(name: str):
    # NaN and Infinity are not JSON
    raise ValueError(f"Invalid JSON constant: {name}")


async def store_data(ctx: ServiceContext, body: str | None) -> Result:
    if not body:
        logger.warning("Request body is missing")
        return 400, {"error": "Request body is required"}

    try:
        data = json.loads(body, parse_constant=_reject_constant)
    except ValueError as e:
        logger.error("Failed to parse request body: %s", e)
        return 400, {"error": "Invalid request body"}

    if not isinstance(data, dict):
        logger.warning("Request body is not a JSON object: %r", data)
        return 400, {"error": "Invalid request body"}

    logger.debug("Parsed request body with keys %s", sorted(data))

    try:
        await ctx.blob_store().append_opaque(data)
    except Exception as e:
        logger.error("Failed to store item: %s", e)
        return internal_error()

    return 201, {"message": "Data stored successfully"}


@bp.route(route="store", methods=["POST"])
async def store(req: func.HttpRequest) -> func.HttpResponse:
    body = req.get_body()
    logger.info("Received store request (method=%s, has_body=%s)", req.method, bool(body))
    return to_http_response(await store_data(get_context(), _text(body)))


@router.post("/store")
async def store_endpoint(request: Request):
    body = await request.body()
    logger.info("Received store request (method=%s, has_body=%s)", request.method, bool(body))
    return to_json_response(await store_data(get_context(), _text(body)))
