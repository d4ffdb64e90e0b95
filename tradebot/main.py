from fastapi import FastAPI

from tradebot.api.routes import health, telegram
from tradebot.bootstrap import build_runtime, shutdown_runtime
from tradebot.core.config import settings
from tradebot.core.logging_config import setup_logging

setup_logging(settings.LOG_LEVEL)

app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)


@app.on_event("startup")
async def startup():
    app.state.runtime = await build_runtime(settings)


@app.on_event("shutdown")
async def shutdown():
    runtime = getattr(app.state, "runtime", None)
    if runtime is not None:
        await shutdown_runtime(runtime)


app.include_router(health.router)
app.include_router(telegram.router)
