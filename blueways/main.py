# path: blueways-api/blueways/main.py

import logging

from fastapi import FastAPI
from blueways.api.routes.network import router as network_router
from blueways.config import get_settings

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(message)s",
)

app = FastAPI(title="blueways-api")

app.include_router(network_router)
