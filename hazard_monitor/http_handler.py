# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
HTTP boundary for the Azure Functions routes: CORS, JSON envelopes and the
mapping from service errors to status codes.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import azure.functions as func

from .dispatcher import SatelliteDataDispatcher, parse_overview_params, DEFAULT_DAYS_BACK, DEFAULT_MAX_CLOUD_COVER
from .env_loader import validate_environment
from .errors import BadRequest, SatelliteDataError

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}


def json_response(body: Dict[str, Any], status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps(body, ensure_ascii=False),
        status_code=status_code,
        headers={**CORS_HEADERS, "Content-Type": "application/json"},
        mimetype="application/json",
    )


def error_response(message: str, status_code: int) -> func.HttpResponse:
    return json_response({"error": message}, status_code)


def preflight_response() -> func.HttpResponse:
    return func.HttpResponse("", status_code=200, headers=dict(CORS_HEADERS))


def _read_json_body(req: func.HttpRequest) -> Any:
    try:
        return req.get_json()
    except ValueError as e:
        logger.warning(f"Rejected non-JSON request body: {e}")
        raise BadRequest("Request body must be valid JSON") from e


async def handle_satellite_request(req: func.HttpRequest, dispatcher: SatelliteDataDispatcher) -> func.HttpResponse:
    """Entry point for POST /api/satellite-data."""
    if req.method == "OPTIONS":
        return preflight_response()

    try:
        payload = _read_json_body(req)
        result = await dispatcher.dispatch(payload)
        return json_response(result)
    except SatelliteDataError as e:
        return error_response(e.message, e.http_status)
    except Exception as e:
        logger.exception(f"❌ Unexpected error in satellite-data: {e}")
        return error_response("Internal server error", 500)


async def handle_regions_overview(req: func.HttpRequest, dispatcher: SatelliteDataDispatcher) -> func.HttpResponse:
    """Entry point for GET /api/regions-overview."""
    if req.method == "OPTIONS":
        return preflight_response()

    try:
        params = parse_overview_params(req.params)
        analyses = await dispatcher.analyze_all(
            max_cloud_cover=DEFAULT_MAX_CLOUD_COVER if params.max_cloud_cover is None else params.max_cloud_cover,
            days_back=DEFAULT_DAYS_BACK if params.days_back is None else params.days_back,
        )
        return json_response({"analyses": [analysis.to_dict() for analysis in analyses]})
    except SatelliteDataError as e:
        logger.error(f"❌ Regions overview failed: {e}")
        return error_response(e.message, e.http_status)
    except Exception as e:
        logger.exception(f"❌ Unexpected error in regions-overview: {e}")
        return error_response("Internal server error", 500)


def health_response(
    req: func.HttpRequest,
    settings,
    dispatcher: SatelliteDataDispatcher,
    now: Optional[datetime] = None,
) -> func.HttpResponse:
    """Entry point for GET /api/health."""
    if req.method == "OPTIONS":
        return preflight_response()

    env_status = validate_environment()
    current_time = (now or datetime.now(timezone.utc)).isoformat()
    return json_response({
        "status": "healthy",
        "timestamp": current_time,
        "service": settings.app_name,
        "version": settings.app_version,
        "regions_available": len(dispatcher.registry),
        "credentials_configured": env_status["valid"],
        "missing_settings": env_status["missing"],
        "token_cache_enabled": settings.token_cache_enabled,
        "endpoints": {
            "health": "/api/health",
            "satellite_data": "/api/satellite-data",
            "regions_overview": "/api/regions-overview",
        },
    })
