"""History route — page through stored planet/weather records."""

import logging
import re
from typing import Literal, Mapping

import azure.functions as func
from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from errors import InvalidRequestError
from routes.responses import Result, internal_error, to_http_response, to_json_response
from services.context import ServiceContext, get_context
from services.history import decode_cursor, encode_cursor

logger = logging.getLogger(__name__)

bp = func.Blueprint()
router = APIRouter()

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class HistoryQuery(BaseModel):
    """Query string for GET /history. Unknown parameters are rejected."""

    model_config = ConfigDict(extra="forbid")

    pageSize: int = DEFAULT_PAGE_SIZE
    sort: Literal["ASC", "DESC"] = "DESC"
    lastEvaluatedKey: str | None = None

    @field_validator("pageSize", mode="before")
    @classmethod
    def _page_size_is_number(cls, value):
        if isinstance(value, str):
            if not re.fullmatch(r"[0-9]+", value):
                raise PydanticCustomError("page_size", "Page size must be a number")
            return int(value)
        return value

    @field_validator("pageSize")
    @classmethod
    def _page_size_in_range(cls, value: int) -> int:
        if not 1 <= value <= MAX_PAGE_SIZE:
            raise PydanticCustomError(
                "page_size",
                "Page size must be between 1 and {max_page_size}",
                {"max_page_size": MAX_PAGE_SIZE},
            )
        return value


def _error_details(exc: ValidationError) -> list[dict]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]


async def list_history(ctx: ServiceContext, params: Mapping[str, str]) -> Result:
    try:
        query = HistoryQuery.model_validate(dict(params))
    except ValidationError as e:
        details = _error_details(e)
        logger.error("Invalid query parameters: %s", details)
        return 400, {"error": "Invalid query parameters", "details": details}

    logger.debug("Processing history request (page_size=%d, sort=%s)", query.pageSize, query.sort)

    cursor = None
    if query.lastEvaluatedKey:
        try:
            cursor = decode_cursor(query.lastEvaluatedKey)
        except InvalidRequestError as e:
            logger.error("Invalid lastEvaluatedKey %r: %s", query.lastEvaluatedKey, e.__cause__ or e)
            return 400, {"error": str(e)}

    try:
        page = await ctx.history_store().query(query.pageSize, query.sort == "ASC", cursor)
    except Exception:
        logger.exception("History endpoint failed")
        return internal_error()

    logger.info("Retrieved %d history items", len(page.items))
    body: dict = {"items": page.items}
    if page.last_key:
        body["lastEvaluatedKey"] = encode_cursor(page.last_key)
    return 200, body


@bp.route(route="history", methods=["GET"])
async def history(req: func.HttpRequest) -> func.HttpResponse:
    return to_http_response(await list_history(get_context(), req.params))


@router.get("/history")
async def history_endpoint(request: Request):
    return to_json_response(await list_history(get_context(), request.query_params))
