"""
PHC Health Club API Server
Patient, provider and admin backend for the PHC Health Club practice.

Every response uses one envelope:
    {"success": true,  "data": ...}
    {"success": false, "error": "..."}
"""

import os
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.shared.results import fail, error_message
from app.health.router import API_VERSION, router as health_router
from app.migrations.runner import router as migrations_router
from app.admin.router import router as admin_router
from app.bloodwork import router as bloodwork_router
from app.body_metrics import router as body_metrics_router
from app.fitness import router as fitness_router
from app.lifestyle import router as lifestyle_router
from app.patients import router as patients_router
from app.treatment_plans import router as treatment_plans_router

logger = logging.getLogger("api")

# ============================================
# App Configuration
# ============================================
app = FastAPI(
    title="PHC Health Club API",
    description="Practice management backend: blood work, fitness, body metrics and treatment plans",
    version=API_VERSION,
)

# ============================================
# CORS Configuration
# ============================================
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


# ============================================
# Error envelope
# ============================================
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content=fail(error_message(exc.detail)))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=422, content=fail(error_message(exc.errors())))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=fail("An unexpected error occurred"))


# ============================================
# Routers
# ============================================
app.include_router(health_router)
app.include_router(migrations_router)
app.include_router(admin_router)
app.include_router(patients_router)
app.include_router(bloodwork_router)
app.include_router(fitness_router)
app.include_router(body_metrics_router)
app.include_router(lifestyle_router)
app.include_router(treatment_plans_router)


# ============================================
# Health & Version Endpoints
# ============================================
@app.get("/")
def root():
    return {
        "service": "PHC Health Club API",
        "version": API_VERSION,
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "healthy"}
