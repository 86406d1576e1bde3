# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Region registry for the monitored Romanian regions.

The registry is an immutable lookup table built once at startup and handed to
the components that need it, so tests can substitute their own regions.
Bounding boxes are [min_lon, min_lat, max_lon, max_lat] in WGS84 degrees.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Tuple

from .errors import UnknownRegionError

BBox = Tuple[float, float, float, float]


@dataclass(frozen=True)
class Region:
    id: str
    display_name: str
    bbox: BBox

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.display_name, "bbox": list(self.bbox)}


def validate_bbox(bbox: Iterable[float]) -> BBox:
    """Validate and normalize a bounding box, raising ValueError if malformed."""
    values = tuple(float(v) for v in bbox)
    if len(values) != 4:
        raise ValueError(f"Bounding box must have 4 values, got {len(values)}")

    min_lon, min_lat, max_lon, max_lat = values
    if not (-180 <= min_lon < max_lon <= 180):
        raise ValueError(f"Invalid longitude range in bbox {list(values)}")
    if not (-90 <= min_lat < max_lat <= 90):
        raise ValueError(f"Invalid latitude range in bbox {list(values)}")

    return values


class RegionRegistry:
    """Read-only mapping from region id to Region."""

    def __init__(self, regions: Iterable[Region]):
        table: Dict[str, Region] = {}
        for region in regions:
            if region.id in table:
                raise ValueError(f"Duplicate region id: {region.id}")
            validate_bbox(region.bbox)
            table[region.id] = region
        self._regions = MappingProxyType(table)

    def lookup(self, region_id: str) -> Region:
        """Return the region for ``region_id`` or raise UnknownRegionError."""
        region = self._regions.get(region_id)
        if region is None:
            raise UnknownRegionError(region_id)
        return region

    def list_regions(self) -> List[Dict[str, Any]]:
        return [region.to_dict() for region in self._regions.values()]

    def __contains__(self, region_id: object) -> bool:
        return region_id in self._regions

    def __iter__(self) -> Iterator[Region]:
        return iter(self._regions.values())

    def __len__(self) -> int:
        return len(self._regions)


ROMANIAN_REGIONS: Tuple[Region, ...] = (
    Region("fagaras", "Făgăraș", (24.5, 45.5, 25.5, 46.0)),
    Region("iasi", "Iași", (27.5, 47.0, 27.8, 47.3)),
    Region("timisoara", "Timișoara", (21.1, 45.6, 21.4, 45.9)),
    Region("craiova", "Craiova", (23.7, 44.2, 24.0, 44.5)),
    Region("constanta", "Constanța", (28.5, 44.1, 28.8, 44.4)),
    Region("baia_mare", "Baia Mare", (23.4, 47.5, 23.7, 47.8)),
    Region("bucuresti", "București", (25.9, 44.3, 26.2, 44.6)),
    Region("cluj", "Cluj", (23.5, 46.7, 23.8, 47.0)),
)


def default_registry() -> RegionRegistry:
    return RegionRegistry(ROMANIAN_REGIONS)
