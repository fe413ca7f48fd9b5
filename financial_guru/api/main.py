"""FastAPI application factory"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from financial_guru.api.middleware import RequestIDMiddleware, MetricsMiddleware
from financial_guru.api.routes import (
    accounts,
    alerts,
    analysis,
    budgets,
    chat,
    dashboard,
    digest,
    export,
    goals,
    insights,
    networth,
    profile,
    search,
    statements,
    subscriptions,
    transactions,
)
from financial_guru.infrastructure.database.session import get_session_factory
from financial_guru.infrastructure.observability.logging import setup_logging
from financial_guru.services.scheduler import JobScheduler
from financial_guru.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    if settings.scheduler_enabled:
        scheduler = JobScheduler(get_session_factory())
        await scheduler.start()
    yield
    if scheduler is not None:
        await scheduler.stop()


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Financial Guru",
        description="Personal finance dashboard API: statements, budgets, insights and an AI advisor",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(dashboard.router, prefix="/api", tags=["dashboard"])
    app.include_router(accounts.router, prefix="/api", tags=["accounts"])
    app.include_router(statements.router, prefix="/api", tags=["statements"])
    app.include_router(transactions.router, prefix="/api", tags=["transactions"])
    app.include_router(alerts.router, prefix="/api", tags=["alerts"])
    app.include_router(subscriptions.router, prefix="/api", tags=["subscriptions"])
    app.include_router(budgets.router, prefix="/api", tags=["budgets"])
    app.include_router(profile.router, prefix="/api", tags=["profile"])
    app.include_router(goals.router, prefix="/api", tags=["goals"])
    app.include_router(networth.router, prefix="/api", tags=["networth"])
    app.include_router(insights.router, prefix="/api", tags=["insights"])
    app.include_router(chat.router, prefix="/api", tags=["chat"])
    app.include_router(analysis.router, prefix="/api", tags=["analysis"])
    app.include_router(search.router, prefix="/api", tags=["search"])
    app.include_router(digest.router, prefix="/api", tags=["digest"])
    app.include_router(export.router, prefix="/api", tags=["export"])

    return app


app = create_app()
