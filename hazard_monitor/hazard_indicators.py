# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Qualitative hazard indicators derived from catalog search results.

These are coverage-based estimates, not signal processing: vegetation health
is approximated from optical cloud cover and flood risk from how much radar
coverage is available to monitor the region.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from .catalog_client import ProductMetadata

# Classification thresholds
GOOD_VEGETATION_MAX_CLOUD = 20
POOR_VEGETATION_MIN_CLOUD = 50
LOW_FLOOD_RISK_MIN_RADAR = 3
NO_OPTICAL_CLOUD_COVER = 100


@dataclass(frozen=True)
class HazardIndicators:
    flood_risk: str
    vegetation_health: str
    data_availability: str
    last_update: Optional[str]
    radar_coverage: bool
    optical_coverage: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "floodRisk": self.flood_risk,
            "vegetationHealth": self.vegetation_health,
            "dataAvailability": self.data_availability,
            "lastUpdate": self.last_update,
            "radarCoverage": self.radar_coverage,
            "opticalCoverage": self.optical_coverage,
        }


def average_cloud_cover(optical: Sequence[ProductMetadata]) -> float:
    """Mean cloud cover, counting missing values as 0. Empty input is 100."""
    if not optical:
        return NO_OPTICAL_CLOUD_COVER
    return sum(p.cloud_cover or 0 for p in optical) / len(optical)


def classify_data_availability(has_optical: bool, has_radar: bool) -> str:
    if has_optical and has_radar:
        return "good"
    if has_optical or has_radar:
        return "moderate"
    return "limited"


def classify_vegetation_health(avg_cloud_cover: float, has_optical: bool) -> str:
    if avg_cloud_cover < GOOD_VEGETATION_MAX_CLOUD and has_optical:
        return "good"
    if avg_cloud_cover > POOR_VEGETATION_MIN_CLOUD or not has_optical:
        return "poor"
    return "moderate"


def classify_flood_risk(radar_count: int) -> str:
    # Without radar the region cannot be monitored, so risk is treated as high
    if radar_count >= LOW_FLOOD_RISK_MIN_RADAR:
        return "low"
    if radar_count == 0:
        return "high"
    return "medium"


def latest_acquisition(*product_lists: Sequence[ProductMetadata]) -> Optional[str]:
    dates = [p.acquisition_date for products in product_lists for p in products if p.acquisition_date]
    return max(dates) if dates else None


def derive_indicators(
    optical: Sequence[ProductMetadata],
    radar: Sequence[ProductMetadata],
) -> HazardIndicators:
    """Pure function of the optical (Sentinel-2) and radar (Sentinel-1) results."""
    has_optical = len(optical) > 0
    has_radar = len(radar) > 0

    return HazardIndicators(
        flood_risk=classify_flood_risk(len(radar)),
        vegetation_health=classify_vegetation_health(average_cloud_cover(optical), has_optical),
        data_availability=classify_data_availability(has_optical, has_radar),
        last_update=latest_acquisition(optical, radar),
        radar_coverage=has_radar,
        optical_coverage=has_optical,
    )
