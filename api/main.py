"""FastAPI application entry point."""

import argparse
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from api.schemas import HealthResponse
from api.websocket import lobby, manager, router as ws_router
from config import config, setup_logging

# Initialize rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    enabled=config.rate_limit.enabled,
    default_limits=[f"{config.rate_limit.requests_per_minute}/minute"],
)


def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    setup_logging()
    yield


app = FastAPI(
    title="PvP Blackjack",
    description="Two players versus the dealer, matched over WebSocket",
    version="0.1.0",
    lifespan=lifespan,
)

# Add rate limiter to app state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors.allowed_origins,
    allow_credentials=config.cors.allow_credentials,
    allow_methods=config.cors.allow_methods,
    allow_headers=config.cors.allow_headers,
)


@app.get("/api/health", response_model=HealthResponse)
@limiter.limit(f"{config.rate_limit.requests_per_minute}/minute")
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint with queue and table counts."""
    return HealthResponse(
        status="healthy",
        connections=manager.active_connections,
        **lobby.stats(),
    )


# Include routers
app.include_router(ws_router, prefix="/ws", tags=["websocket"])


def main(argv: list[str] | None = None) -> None:
    """Run the server, optionally on an explicit port."""
    parser = argparse.ArgumentParser(description="PvP blackjack server")
    parser.add_argument("--port", type=int, default=config.port, help="port to listen on")
    parser.add_argument("--host", default=config.host, help="interface to bind")
    args = parser.parse_args(argv)

    setup_logging()
    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=config.debug)


if __name__ == "__main__":
    main()
