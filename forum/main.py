import logging

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from forum.config import get_settings
from forum.controllers.analytics import router as analytics_router
from forum.controllers.bookings import router as bookings_router
from forum.controllers.companies import router as companies_router
from forum.controllers.events import router as events_router
from forum.controllers.health import router as health_router
from forum.controllers.offers import router as offers_router
from forum.controllers.registrations import router as registrations_router
from forum.controllers.slots import router as slots_router
from forum.controllers.students import router as students_router
from forum.errors import register_exception_handlers
from forum.lifespan import cleanup_resources, setup_resources
from forum.middleware import HTTPLogMiddleware

settings = get_settings()

app = FastAPI(title="Internship Forum Booking API", version="1.0.0")
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_origin_regex=settings.cors.origins_regex or None,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.debug.request:
    logging.getLogger("forum.http").setLevel(logging.DEBUG)
    app.add_middleware(HTTPLogMiddleware)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    resources = await setup_resources(enable_db=settings.features.db)
    try:
        yield
    finally:
        await cleanup_resources(resources)


app.router.lifespan_context = lifespan

app.include_router(health_router)
app.include_router(events_router)
app.include_router(slots_router)
app.include_router(bookings_router)
app.include_router(students_router)
app.include_router(companies_router)
app.include_router(registrations_router)
app.include_router(offers_router)
app.include_router(analytics_router)

Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
