"""
FastAPI Application Entry Point

Literature Tracer API
"""
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from literature_tracer.core.config import Settings, settings
from literature_tracer.core.dependencies import get_cache, get_settings
from literature_tracer.core.rate_limit import limiter, rate_limit_exceeded_handler
from literature_tracer.api.search import router as search_router
from literature_tracer.services.cache import EvaluationCache
from literature_tracer.services.llm import llm_available

VERSION = "1.0.0"

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Traces the claims in a text back to supporting academic literature",
    version=VERSION
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

app.include_router(search_router)

origins = [
    "http://localhost:3000",
    "*"
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


@app.get("/")
async def health_check(
    cache: EvaluationCache = Depends(get_cache),
    config: Settings = Depends(get_settings),
):
    """Root endpoint to verify the server is running."""
    return {
        "status": "active",
        "project": config.PROJECT_NAME,
        "version": VERSION,
        "cache": {
            "type": "redis" if cache.is_connected else "in-memory",
            "connected": cache.is_connected
        },
        "providers": {
            "neural": bool(config.EXA_API_KEY),
            "bibliographic": True,
            "llm": llm_available()
        },
        "primary_unavailable_policy": config.primary_unavailable_policy,
        "endpoints": {
            "search": "/api/search",
            "evaluate": "/api/evaluate",
            "highlight": "/api/highlight",
            "clear_cache": "/api/cache"
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
