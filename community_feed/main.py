from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from community_feed.core.config import settings
from community_feed.core.kinds import ItemKind
from community_feed.db.init_db import create_all_tables
from community_feed.middleware.request_logging import RequestLoggingMiddleware
from community_feed.modules.items.api.router import build_router as build_items_router
from community_feed.modules.items.comments.api.router import build_router as build_comments_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("community_feed")

# Initialize the FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    debug=settings.DEBUG,
    description="Posts, announcements and feedback with likes and threaded comments",
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting server in {settings.ENVIRONMENT} mode")
    create_all_tables()

app.add_middleware(RequestLoggingMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers, one set per item kind. Comment routes go first so
# /{kind}/comments/{comment_id} is never read as an item id.
for kind in ItemKind:
    prefix = f"{settings.API_V1_STR}/{kind.value}"
    app.include_router(build_comments_router(kind), prefix=prefix, tags=[f"{kind.value} comments"])
    app.include_router(build_items_router(kind), prefix=prefix, tags=[kind.value])

@app.get("/")
async def root():
    return {
        "message": "Welcome to Community Feed",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "documentation": "/docs" if settings.DEBUG else None,
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("community_feed.main:app", host="0.0.0.0", port=8000, reload=True)
