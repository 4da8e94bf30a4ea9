import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from conduit.cache import cache
from conduit.config import settings
from conduit.exceptions import APIError
from conduit.middleware import RequestLogMiddleware
from conduit.routers import articles, profiles, tags

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Startup; the cache disables itself if Redis is unreachable
    await cache.connect()
    yield
    # Shutdown
    await cache.disconnect()

app = FastAPI(
    title="Conduit API",
    description="Articles, comments, profiles and tags for a blogging platform",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(articles.router)
app.include_router(profiles.router)
app.include_router(tags.router)

@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.body)
    return JSONResponse(status_code=exc.status_code, content=exc.body)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Field-keyed like the service errors: {"errors": {"title": ["..."]}}
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field = str(error["loc"][-1]) if error["loc"] else "body"
        errors.setdefault(field, []).append(error["msg"])
    return JSONResponse(status_code=422, content={"errors": errors})

@app.get("/")
async def root():
    return {"status": "API is running on /api"}

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
