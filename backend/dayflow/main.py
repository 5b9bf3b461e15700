"""Main FastAPI application for the DayFlow backend."""
from fastapi import FastAPI, Request

from dayflow.api.routes.calendar import router as calendar_router
from dayflow.api.routes.priorities import router as priorities_router
from dayflow.api.routes.schedule import router as schedule_router
from dayflow.core.config import settings
from dayflow.core.logging import configure_logging
from dayflow.core.middleware import RequestIDMiddleware
from dayflow.observability.client import init_opik
from dayflow.observability.tracing import trace

configure_logging(log_level=settings.log_level, debug=settings.debug)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(priorities_router)
app.include_router(schedule_router)
app.include_router(calendar_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok", "calendar_provider": settings.calendar_provider}
