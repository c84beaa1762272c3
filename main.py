"""
Sports Grades API

Main FastAPI application for the student-athlete grade lookup service.
Lets coaches and mentors search the student athletes they are granted and
view per-course grade breakdowns.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from database import init_db
from api import search_router, grades_router, access_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# --------------- Lifespan ---------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler – initialise DB on startup."""
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized.")
    yield


# --------------- FastAPI app ---------------

app = FastAPI(
    title="Sports Grades API",
    description="""
API for looking up student-athlete grades.

## Features

### Search
- Filter student athletes by universal ID, username, name, major,
  classification and sport
- Results only include students of the sports the requester is granted

### Grades
- Per-course final grade and letter grade
- Every grade item with weight, percentage and contribution to the final grade
- Results cached per student for one hour

### Access Rules
- **Administrators**: See every student and manage access grants
- **Granted users**: See students of their granted sports, or all sports
  for an all-sports grant, plus individually granted students
- **Everyone else**: Searches return nothing, grade lookups are refused
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc), "type": type(exc).__name__}
    )


# Include routers
app.include_router(search_router)
app.include_router(grades_router)
app.include_router(access_router)


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - API health check."""
    return {
        "status": "online",
        "service": "Sports Grades API",
        "version": "1.0.0"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
