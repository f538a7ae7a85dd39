"""Combined route — random planet + random country weather, saved to history."""

import asyncio
import logging

import azure.functions as func
from fastapi import APIRouter

from routes.responses import Result, internal_error, to_http_response, to_json_response
from services.context import ServiceContext, get_context
from services.mappers import to_planet_weather
from services.swapi import random_planet_id

logger = logging.getLogger(__name__)

bp = func.Blueprint()
router = APIRouter()


async def _gather_or_cancel(*aws):
    """Like asyncio.gather, but a failure cancels the lookups still running."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except Exception:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def combine_and_store(ctx: ServiceContext) -> Result:
    """Fetch a planet and the weather, merge them and append to history."""
    try:
        planet_id = random_planet_id(ctx.rng)
        logger.debug("Processing combined request for planet %s", planet_id)

        planet, weather = await _gather_or_cancel(
            ctx.planet_service().get_planet(planet_id),
            ctx.weather_service().get_weather(),
        )

        combined = to_planet_weather(planet_id, planet, weather)
        logger.info("Data combined successfully for planet %s", planet_id)

        await ctx.history_store().append(combined)
    except Exception:
        logger.exception("Combined endpoint failed")
        return internal_error()

    return 200, combined


@bp.route(route="combined", methods=["GET"])
async def combined(req: func.HttpRequest) -> func.HttpResponse:
    return to_http_response(await combine_and_store(get_context()))


@router.get("/combined")
async def combined_endpoint():
    return to_json_response(await combine_and_store(get_context()))
