from prometheus_fastapi_instrumentator import Instrumentator

from billing_portal.core.config import settings
from billing_portal.core.logging import setup_logging

from . import app as portal_app

setup_logging()
app = portal_app
Instrumentator(excluded_handlers=["/metrics", "/health", "/static.*"]).instrument(app).expose(
    app, include_in_schema=False
)


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


def run() -> None:
    import uvicorn

    uvicorn.run("billing_portal.main:app", host=settings.HOST, port=settings.PORT)
