# eip_controller/main.py
import logging
import sys

import uvicorn
from fastapi import FastAPI

from .api.v1 import addresses_router
from .config import settings
from .core.event_handlers import register_event_handlers

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger("eip_controller")

app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)
app.include_router(addresses_router, prefix=f"{settings.API_PREFIX}/addresses", tags=["addresses"])

register_event_handlers()


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "eip-controller", "cluster": settings.CLUSTER_NAME}


def run():
    logger.info(f"Starting {settings.APP_NAME} for cluster {settings.CLUSTER_NAME}")
    uvicorn.run("eip_controller.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)


if __name__ == "__main__":
    run()
