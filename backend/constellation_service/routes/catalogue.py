"""Catalogue endpoints: GET /api/constellations, GET /api/constellations/{entry_id}."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from constellation_service.harvester import ConstellationCatalogue, get_catalogue_service
from constellation_service.models import CatalogueEntry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/constellations", tags=["constellations"])


@router.get("", response_model=list[CatalogueEntry])
async def list_constellations(service: ConstellationCatalogue = Depends(get_catalogue_service)):
    """Every harvested constellation; an empty array when no source could be read."""
    constellations = await service.get_catalogue()
    logger.info("Serving %d constellations", len(constellations))
    return constellations


@router.get("/{entry_id}", response_model=CatalogueEntry)
async def get_constellation(entry_id: str, service: ConstellationCatalogue = Depends(get_catalogue_service)):
    entry = await service.get_entry(entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Unknown constellation '{entry_id}'")
    return entry
