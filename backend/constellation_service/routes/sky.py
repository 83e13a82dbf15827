"""GET /api/sky-conditions — visible constellations for an observer right now.

The observer's clock is approximated by local mean solar time (UTC shifted
by longitude / 15 hours), so no timezone lookup is needed.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query

from constellation_service.harvester import ConstellationCatalogue, get_catalogue_service
from constellation_service.models import VisibilityResult
from constellation_service.visibility import compute_visibility, default_result

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["sky"])


def parse_coordinate(raw: str | None) -> float:
    """Lenient float parse; anything unusable becomes NaN (rejected downstream)."""
    if raw is None:
        return math.nan
    try:
        return float(raw)
    except ValueError:
        return math.nan


def local_mean_time(lon: float, now_utc: datetime | None = None) -> datetime:
    now_utc = now_utc or datetime.now(timezone.utc)
    # out-of-range longitudes are rejected downstream; no shift for them
    offset = timedelta(hours=lon / 15.0) if -180 <= lon <= 180 else timedelta(0)
    return (now_utc + offset).replace(tzinfo=None)


@router.get("/sky-conditions", response_model=VisibilityResult)
async def sky_conditions(
    lat: str | None = Query(default=None, description="Observer latitude, degrees north"),
    lon: str | None = Query(default=None, description="Observer longitude, degrees east"),
    service: ConstellationCatalogue = Depends(get_catalogue_service),
):
    latitude, longitude = parse_coordinate(lat), parse_coordinate(lon)
    now_local = local_mean_time(longitude)

    try:
        catalogue = await service.get_catalogue()
    except Exception:
        logger.exception("Catalogue unavailable for sky conditions")
        return default_result(now_local)

    return compute_visibility(catalogue, latitude, longitude, now_local)
