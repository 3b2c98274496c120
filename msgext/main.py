import logging

from fastapi import FastAPI

from msgext.api.deps import init_application
from msgext.api.routes import router
from msgext.config import get_log_level

app = FastAPI(title="msgext", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=get_log_level())
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def _startup() -> None:
    application = init_application()
    logger.info("Serving application %s", type(application).__name__)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "msgext", "version": "0.1.0"}
