"""
Satellite Data Function App
Copernicus Data Space product discovery and hazard indicators for Romanian regions
"""

import logging

import azure.functions as func

from hazard_monitor import settings, setup_logging
from hazard_monitor.dispatcher import build_dispatcher
from hazard_monitor.env_loader import validate_environment
from hazard_monitor.http_handler import handle_regions_overview, handle_satellite_request, health_response

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

# Built once per worker; the token cache (when enabled) lives as long as the worker
dispatcher = build_dispatcher(settings)

logger.info(f"🚀 {settings.app_name} starting with {len(dispatcher.registry)} regions")
env_status = validate_environment()
if not env_status["valid"]:
    logger.warning(f"⚠️ Missing settings: {', '.join(env_status['missing'])}; catalog actions will fail")

app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)


@app.route(route="satellite-data", methods=["POST", "OPTIONS"])
async def satellite_data(req: func.HttpRequest) -> func.HttpResponse:
    """list-regions, search and analyze actions"""
    return await handle_satellite_request(req, dispatcher)


@app.route(route="regions-overview", methods=["GET", "OPTIONS"])
async def regions_overview(req: func.HttpRequest) -> func.HttpResponse:
    return await handle_regions_overview(req, dispatcher)


@app.route(route="health", methods=["GET", "OPTIONS"])
def health_check(req: func.HttpRequest) -> func.HttpResponse:
    return health_response(req, settings, dispatcher)
