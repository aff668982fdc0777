"""
Simple Bank — FastAPI Application.

This is the entry point for the application.
All routers are registered here.
"""

import uvicorn
from fastapi import FastAPI

from simple_bank.config import get_settings
from simple_bank.logging_config import setup_logging
from simple_bank.api.health import router as health_router
from simple_bank.api.users import router as users_router
from simple_bank.api.accounts import router as accounts_router
from simple_bank.api.transfers import router as transfers_router

settings = get_settings()
logger = setup_logging(settings.LOG_LEVEL)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Accounts and transfers over a transactional ledger",
)

# Register routers
app.include_router(health_router)
app.include_router(users_router)
app.include_router(accounts_router)
app.include_router(transfers_router)


if __name__ == "__main__":
    logger.info("Starting %s on %s:%s", settings.APP_NAME, settings.HOST, settings.PORT)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
