# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Action dispatcher for the satellite data endpoint.

Routes ``list-regions``, ``search`` and ``analyze`` to the registry, token
provider, catalog client and indicator engine. Each call is independent: it
opens its own HTTP session and keeps no state beyond the optional token cache.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional, Sequence

import aiohttp
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .catalog_client import CatalogClient, ProductMetadata
from .catalog_query import SENTINEL_1, SENTINEL_2
from .errors import BadRequest, InvalidAction, SatelliteDataError
from .hazard_indicators import HazardIndicators, derive_indicators
from .regions import Region, RegionRegistry, default_registry
from .token_provider import CachedTokenProvider, Credential, TokenProvider

logger = logging.getLogger(__name__)

DEFAULT_SATELLITE = SENTINEL_2
DEFAULT_MAX_CLOUD_COVER = 30
DEFAULT_DAYS_BACK = 30
# Radar has no cloudCover attribute; 100 keeps the optical/radar calls symmetric
RADAR_MAX_CLOUD_COVER = 100
ANALYSIS_PRODUCT_LIMIT = 5
MAX_DAYS_BACK = 3650


class SatelliteDataRequest(BaseModel):
    """Inbound JSON body of the satellite-data endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    action: Optional[str] = Field(None, description="list-regions | search | analyze")
    region_id: Optional[str] = Field(None, alias="regionId", description="Region identifier")
    satellite: Optional[Literal["sentinel-1", "sentinel-2"]] = Field(None, description="Satellite family")
    max_cloud_cover: Optional[float] = Field(None, alias="maxCloudCover", ge=0, le=100)
    days_back: Optional[int] = Field(None, alias="daysBack", ge=1, le=MAX_DAYS_BACK)


class OverviewRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    max_cloud_cover: Optional[float] = Field(None, alias="maxCloudCover", ge=0, le=100)
    days_back: Optional[int] = Field(None, alias="daysBack", ge=1, le=MAX_DAYS_BACK)


def _validation_message(error: ValidationError) -> str:
    details = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        details.append(f"{location}: {item.get('msg')}" if location else item.get("msg"))
    return "Invalid request: " + "; ".join(details)


def parse_request(payload: Any) -> SatelliteDataRequest:
    if not isinstance(payload, dict):
        raise BadRequest("Request body must be a JSON object")
    try:
        return SatelliteDataRequest.model_validate(payload)
    except ValidationError as e:
        raise BadRequest(_validation_message(e)) from e


def parse_overview_params(params: Dict[str, str]) -> OverviewRequest:
    try:
        return OverviewRequest.model_validate(dict(params))
    except ValidationError as e:
        raise BadRequest(_validation_message(e)) from e


@dataclass(frozen=True)
class RegionAnalysis:
    region: Region
    indicators: HazardIndicators
    sentinel2_products: Sequence[ProductMetadata]
    sentinel1_products: Sequence[ProductMetadata]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "regionId": self.region.id,
            "regionName": self.region.display_name,
            "bbox": list(self.region.bbox),
            "indicators": self.indicators.to_dict(),
            "sentinel2Products": [p.to_dict() for p in self.sentinel2_products],
            "sentinel1Products": [p.to_dict() for p in self.sentinel1_products],
        }


async def gather_fail_fast(*aws: Awaitable[Any]) -> List[Any]:
    """
    Run awaitables concurrently and return their results in order.

    The first failure cancels the remaining tasks and is re-raised as-is.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise

    if pending:
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    errors = [
        task.exception() for task in tasks
        if task in done and not task.cancelled() and task.exception() is not None
    ]
    if errors:
        raise errors[0]

    return [task.result() for task in tasks]


class SatelliteDataDispatcher:
    def __init__(
        self,
        registry: RegionRegistry,
        token_provider,
        catalog_client: CatalogClient,
        session_factory: Optional[Callable[[], aiohttp.ClientSession]] = None,
        timeout_seconds: float = 30.0,
    ):
        self.registry = registry
        self.token_provider = token_provider
        self.catalog_client = catalog_client
        self.timeout_seconds = timeout_seconds
        self._session_factory = session_factory or self._default_session
        self._handlers = {
            "list-regions": self._handle_list_regions,
            "search": self._handle_search,
            "analyze": self._handle_analyze,
        }

    def _default_session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout_seconds))

    async def dispatch(self, payload: Any) -> Dict[str, Any]:
        """Validate the request body and run the requested action."""
        try:
            request = parse_request(payload)
        except BadRequest as e:
            fields = payload if isinstance(payload, dict) else {}
            logger.warning(f"Rejected request for action {fields.get('action')}, region {fields.get('regionId')}: {e}")
            raise

        logger.info(f"Action: {request.action}, Region: {request.region_id}")

        handler = self._handlers.get(request.action)
        if handler is None:
            logger.warning(f"Rejected invalid action: {request.action!r}")
            raise InvalidAction(request.action)

        try:
            return await handler(request)
        except SatelliteDataError as e:
            logger.error(f"❌ Action {request.action} failed for region {request.region_id}: {e}")
            raise

    async def _handle_list_regions(self, request: SatelliteDataRequest) -> Dict[str, Any]:
        return {"regions": self.registry.list_regions()}

    async def _handle_search(self, request: SatelliteDataRequest) -> Dict[str, Any]:
        products = await self.search(
            self._require_region_id(request),
            satellite=request.satellite or DEFAULT_SATELLITE,
            max_cloud_cover=_or_default(request.max_cloud_cover, DEFAULT_MAX_CLOUD_COVER),
            days_back=_or_default(request.days_back, DEFAULT_DAYS_BACK),
        )
        return {"products": [p.to_dict() for p in products]}

    async def _handle_analyze(self, request: SatelliteDataRequest) -> Dict[str, Any]:
        analysis = await self.analyze(
            self._require_region_id(request),
            max_cloud_cover=_or_default(request.max_cloud_cover, DEFAULT_MAX_CLOUD_COVER),
            days_back=_or_default(request.days_back, DEFAULT_DAYS_BACK),
        )
        return analysis.to_dict()

    @staticmethod
    def _require_region_id(request: SatelliteDataRequest) -> str:
        if not request.region_id:
            raise BadRequest("regionId is required")
        return request.region_id

    async def search(
        self,
        region_id: str,
        satellite: str = DEFAULT_SATELLITE,
        max_cloud_cover: float = DEFAULT_MAX_CLOUD_COVER,
        days_back: int = DEFAULT_DAYS_BACK,
    ) -> List[ProductMetadata]:
        # Unknown regions fail before any network traffic
        region = self.registry.lookup(region_id)

        async with self._session_factory() as session:
            credential = await self.token_provider.get_access_token(session)
            return await self.catalog_client.search(
                session, credential, region, satellite, max_cloud_cover, days_back
            )

    async def analyze(
        self,
        region_id: str,
        max_cloud_cover: float = DEFAULT_MAX_CLOUD_COVER,
        days_back: int = DEFAULT_DAYS_BACK,
    ) -> RegionAnalysis:
        region = self.registry.lookup(region_id)

        async with self._session_factory() as session:
            credential = await self.token_provider.get_access_token(session)
            return await self._analyze_region(session, credential, region, max_cloud_cover, days_back)

    async def analyze_all(
        self,
        max_cloud_cover: float = DEFAULT_MAX_CLOUD_COVER,
        days_back: int = DEFAULT_DAYS_BACK,
    ) -> List[RegionAnalysis]:
        """
        Analyze every registered region concurrently.

        Regions whose analysis fails are logged and left out of the result;
        token or configuration failures still fail the whole call.
        """
        regions = list(self.registry)

        async with self._session_factory() as session:
            credential = await self.token_provider.get_access_token(session)
            results = await asyncio.gather(
                *(self._analyze_region(session, credential, region, max_cloud_cover, days_back) for region in regions),
                return_exceptions=True,
            )

        analyses = []
        for region, result in zip(regions, results):
            if isinstance(result, SatelliteDataError):
                logger.warning(f"⚠️ Failed to analyze {region.id}: {result}")
                continue
            if isinstance(result, BaseException):
                raise result
            analyses.append(result)

        logger.info(f"📊 Overview analysis: {len(analyses)}/{len(regions)} regions succeeded")
        return analyses

    async def _analyze_region(
        self,
        session: aiohttp.ClientSession,
        credential: Credential,
        region: Region,
        max_cloud_cover: float,
        days_back: int,
    ) -> RegionAnalysis:
        optical, radar = await gather_fail_fast(
            self.catalog_client.search(session, credential, region, SENTINEL_2, max_cloud_cover, days_back),
            self.catalog_client.search(session, credential, region, SENTINEL_1, RADAR_MAX_CLOUD_COVER, days_back),
        )

        return RegionAnalysis(
            region=region,
            indicators=derive_indicators(optical, radar),
            sentinel2_products=optical[:ANALYSIS_PRODUCT_LIMIT],
            sentinel1_products=radar[:ANALYSIS_PRODUCT_LIMIT],
        )


def _or_default(value, default):
    return default if value is None else value


def build_dispatcher(settings, registry: Optional[RegionRegistry] = None) -> SatelliteDataDispatcher:
    """Wire the dispatcher from settings; token caching is opt-in."""
    token_provider = TokenProvider.from_settings(settings)
    if settings.token_cache_enabled:
        token_provider = CachedTokenProvider(token_provider, margin_seconds=settings.token_expiry_margin_seconds)

    return SatelliteDataDispatcher(
        registry=registry or default_registry(),
        token_provider=token_provider,
        catalog_client=CatalogClient.from_settings(settings),
        timeout_seconds=settings.http_timeout_seconds,
    )
