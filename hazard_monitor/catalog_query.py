# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
OData filter construction for the Copernicus Data Space product catalog.

A filter is the conjunction of a collection predicate, a spatial intersects
predicate over the region bbox, a temporal window on ContentDate/Start and,
for Sentinel-2 only, a cloud cover predicate.
"""

import urllib.parse
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from .errors import BadRequest
from .regions import BBox, Region

SENTINEL_1 = "sentinel-1"
SENTINEL_2 = "sentinel-2"

COLLECTION_NAMES: Dict[str, str] = {
    SENTINEL_1: "SENTINEL-1",
    SENTINEL_2: "SENTINEL-2",
}

SATELLITE_DISPLAY_NAMES: Dict[str, str] = {
    SENTINEL_1: "Sentinel-1",
    SENTINEL_2: "Sentinel-2",
}

SPATIAL_REFERENCE = 4326
ORDER_BY = "ContentDate/Start desc"

# encodeURIComponent leaves these unescaped
_URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass(frozen=True)
class FilterExpression:
    collection: str
    spatial: str
    temporal: str
    cloud_cover: Optional[str] = None

    def predicates(self) -> List[str]:
        parts = [self.collection, self.spatial, self.temporal]
        if self.cloud_cover:
            parts.append(self.cloud_cover)
        return parts

    def __str__(self) -> str:
        return " and ".join(self.predicates())


def format_number(value: float) -> str:
    """Render a number without a trailing '.0' for whole values."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with millisecond precision, e.g. 2024-05-01T10:00:00.000Z."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def build_polygon_wkt(bbox: BBox) -> str:
    """Closed rectangular ring in (lon lat) order, first vertex repeated last."""
    min_lon, min_lat, max_lon, max_lat = (format_number(v) for v in bbox)
    ring = [
        (min_lon, min_lat),
        (max_lon, min_lat),
        (max_lon, max_lat),
        (min_lon, max_lat),
        (min_lon, min_lat),
    ]
    return "POLYGON((" + ",".join(f"{lon} {lat}" for lon, lat in ring) + "))"


def collection_predicate(satellite: str) -> str:
    try:
        collection = COLLECTION_NAMES[satellite]
    except KeyError:
        raise BadRequest(f"Unsupported satellite: {satellite}")
    return f"Collection/Name eq '{collection}'"


def spatial_predicate(bbox: BBox) -> str:
    polygon = build_polygon_wkt(bbox)
    return f"OData.CSC.Intersects(area=geography'SRID={SPATIAL_REFERENCE};{polygon}')"


def temporal_predicate(start: datetime, end: datetime) -> str:
    return (
        f"ContentDate/Start ge {format_timestamp(start)} "
        f"and ContentDate/Start le {format_timestamp(end)}"
    )


def cloud_cover_predicate(max_cloud_cover: float) -> str:
    return (
        "Attributes/OData.CSC.DoubleAttribute/any(att:att/Name eq 'cloudCover' "
        f"and att/OData.CSC.DoubleAttribute/Value le {format_number(max_cloud_cover)})"
    )


def build_filter(
    region: Region,
    satellite: str,
    max_cloud_cover: float = 30,
    days_back: int = 30,
    now: Optional[datetime] = None,
) -> FilterExpression:
    """
    Build the catalog filter for one region/satellite search.

    Sentinel-1 is radar and has no cloudCover attribute, so the cloud cover
    predicate is only ever added for Sentinel-2.
    """
    end = now or datetime.now(timezone.utc)
    start = end - timedelta(days=days_back)

    cloud_filter = None
    if satellite == SENTINEL_2:
        cloud_filter = cloud_cover_predicate(max_cloud_cover)

    return FilterExpression(
        collection=collection_predicate(satellite),
        spatial=spatial_predicate(region.bbox),
        temporal=temporal_predicate(start, end),
        cloud_cover=cloud_filter,
    )


def build_catalog_url(base_url: str, expression: FilterExpression, top: int = 10) -> str:
    """Full catalog query URL with $filter, $top and $orderby."""
    query = "&".join([
        "$filter=" + urllib.parse.quote(str(expression), safe=_URI_COMPONENT_SAFE),
        f"$top={top}",
        "$orderby=" + urllib.parse.quote(ORDER_BY, safe=_URI_COMPONENT_SAFE + "/"),
    ])
    return f"{base_url}?{query}"
