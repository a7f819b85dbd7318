"""
FastAPI application entrypoint.

Run locally:  uvicorn fhir_utilities.main:app --reload
"""

import logging

from fastapi import FastAPI

from fhir_utilities.api.routes import router
from fhir_utilities.config import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(levelname)s | %(name)s | %(message)s",
)

app = FastAPI(
    title="FHIR Utilities API",
    description=(
        "Builds NDHM-profiled FHIR R4 resources (claims, coverage, eligibility, "
        "insurance plans, patients, payments, tasks) from loosely-structured input."
    ),
    version="1.0.0",
)

app.include_router(router, prefix="/api/v1")
