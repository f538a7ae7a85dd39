"""Response shaping shared by the Azure Functions and FastAPI adapters.

Route handlers return (status_code, payload); these helpers turn that pair
into each framework's response type.
"""

import json

import azure.functions as func
from fastapi.responses import JSONResponse

from errors import INTERNAL_ERROR

Result = tuple[int, dict]


def internal_error() -> Result:
    return 500, {"error": INTERNAL_ERROR}


def to_http_response(result: Result) -> func.HttpResponse:
    status_code, payload = result
    return func.HttpResponse(json.dumps(payload), mimetype="application/json", status_code=status_code)


def to_json_response(result: Result) -> JSONResponse:
    status_code, payload = result
    return JSONResponse(payload, status_code=status_code)
