"""
Constellation reference & sky visibility service.

Harvests one reference record per constellation from public HTML pages,
caches the catalogue, and answers "what can I see from here tonight?".

Usage:
    constellation-service            # uvicorn on 0.0.0.0:8000
    uvicorn constellation_service.main:app --reload

Environment variables are documented in constellation_service.config.
"""
