from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from pagerecon.api.locate import router as locate_router
from pagerecon.logging_config import configure_logging

configure_logging()

app = FastAPI(title="Logical Page Reconciler API")
app.include_router(locate_router)


@app.get("/", response_class=PlainTextResponse)
def read_root() -> str:
    """Healthcheck endpoint for the service."""
    return "ok"
