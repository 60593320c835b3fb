from datetime import datetime, timezone

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.core.exceptions import RatingException, RepositoryException
from app.core.logging_config import configure_logging

# IMPORT ROUTERS
from app.routers.health import router as health_router
from app.routers.ratings import router as ratings_router
from app.routers.rankings import router as rankings_router
from app.routers.submissions import router as submissions_router
from app.routers.submissions import validation_exception_handler
load_dotenv()


# SWAGGER UI - tag display order
_OPENAPI_TAGS = [
    {"name": "Root"},
    {"name": "Health"},
    {"name": "Submissions"},
    {"name": "Ratings"},
    {"name": "Rankings"},
]

# FASTAPI APPLICATION CONFIGURATION
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=_OPENAPI_TAGS,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


# REGISTER EXCEPTION HANDLERS
async def domain_exception_handler(request: Request, exc: Exception):
    return JSONResponse(
        status_code=getattr(exc, "status_code", 500),
        content={
            "error_code": getattr(exc, "error_code", "INTERNAL_ERROR"),
            "message": str(exc),
            "details": None,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(RatingException, domain_exception_handler)
app.add_exception_handler(RepositoryException, domain_exception_handler)

# REGISTER ROUTERS (order matches _OPENAPI_TAGS / Swagger UI display order)
app.include_router(health_router)       # Health
app.include_router(submissions_router)  # Submissions
app.include_router(ratings_router)      # Ratings
app.include_router(rankings_router)     # Rankings


# ROOT ENDPOINT
@app.get("/", tags=["Root"], summary="Root endpoint")
async def root():
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc"
        },
        "status": "running"
    }


# STARTUP EVENT
@app.on_event("startup")
async def startup_event():
    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    print(f"Starting {settings.APP_NAME} ({settings.APP_ENV})...")
    print("Swagger UI available at: http://localhost:8000/docs")


# RUN WITH UVICORN
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
