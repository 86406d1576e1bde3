# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Copernicus Data Space catalog client.

Runs OData product searches and normalizes the raw records into
ProductMetadata.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import aiohttp

from .catalog_query import SATELLITE_DISPLAY_NAMES, build_catalog_url, build_filter
from .errors import CatalogError
from .regions import Region
from .token_provider import Credential

logger = logging.getLogger(__name__)

CLOUD_COVER_ATTRIBUTE = "cloudCover"


@dataclass(frozen=True)
class ProductMetadata:
    id: str
    name: str
    acquisition_date: Optional[str]
    product_type: str
    satellite: str
    processing_level: str
    cloud_cover: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "acquisitionDate": self.acquisition_date,
            "productType": self.product_type,
            "satellite": self.satellite,
            "processingLevel": self.processing_level,
        }
        if self.cloud_cover is not None:
            data["cloudCover"] = self.cloud_cover
        return data


def infer_processing_level(name: Optional[str]) -> str:
    """
    Guess the processing level from the product name.

    Not authoritative: the catalog does not return the level as a field, so
    this matches 'L2A' before 'L1C' anywhere in the display name.
    """
    if not name:
        return "Unknown"
    if "L2A" in name:
        return "L2A"
    if "L1C" in name:
        return "L1C"
    return "Unknown"


def find_attribute(record: Dict[str, Any], attribute_name: str) -> Optional[Any]:
    for attribute in record.get("Attributes") or []:
        if attribute.get("Name") == attribute_name:
            return attribute.get("Value")
    return None


def parse_product(record: Dict[str, Any], satellite: str) -> ProductMetadata:
    """Normalize one catalog record. Radar records carry no cloudCover."""
    content_date = record.get("ContentDate") or {}
    name = record.get("Name")

    return ProductMetadata(
        id=record.get("Id"),
        name=name,
        acquisition_date=content_date.get("Start") or record.get("ModificationDate"),
        cloud_cover=find_attribute(record, CLOUD_COVER_ATTRIBUTE),
        product_type=record.get("ProductType") or "Unknown",
        satellite=SATELLITE_DISPLAY_NAMES.get(satellite, satellite),
        processing_level=infer_processing_level(name),
    )


class CatalogClient:
    def __init__(self, catalog_url: str, max_results: int = 10):
        self.catalog_url = catalog_url
        self.max_results = max_results

    @classmethod
    def from_settings(cls, settings) -> "CatalogClient":
        return cls(settings.copernicus_catalog_url, settings.catalog_max_results)

    async def search(
        self,
        session: aiohttp.ClientSession,
        credential: Credential,
        region: Region,
        satellite: str,
        max_cloud_cover: float = 30,
        days_back: int = 30,
        now: Optional[datetime] = None,
    ) -> List[ProductMetadata]:
        """Return at most ``max_results`` products, newest acquisition first."""
        expression = build_filter(region, satellite, max_cloud_cover, days_back, now=now)
        url = build_catalog_url(self.catalog_url, expression, top=self.max_results)
        headers = {"Authorization": credential.authorization_header}

        logger.info(f"🔍 Searching {satellite} for {region.id} (last {days_back} days)")
        logger.debug(f"Catalog filter: {expression}")

        try:
            async with session.get(url, headers=headers) as response:
                if not 200 <= response.status < 300:
                    error_text = await response.text()
                    logger.error(f"❌ Catalog error {response.status} for {satellite}/{region.id}: {error_text}")
                    raise CatalogError(f"Failed to search products: {response.status}", response.status)

                payload = await response.json()
        except aiohttp.ClientError as e:
            raise CatalogError(f"Failed to search products: {e}") from e
        except asyncio.TimeoutError as e:
            raise CatalogError("Failed to search products: request timed out") from e

        if not isinstance(payload, dict):
            logger.error(f"❌ Unexpected catalog response for {satellite}/{region.id}: {type(payload).__name__}")
            raise CatalogError("Unexpected catalog response", response.status)

        products = [parse_product(record, satellite) for record in payload.get("value") or []]
        products.sort(key=lambda p: p.acquisition_date or "", reverse=True)

        logger.info(f"✅ {satellite} search for {region.id}: {len(products)} products")
        return products[:self.max_results]
