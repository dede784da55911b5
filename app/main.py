from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi import Request
from app.routers import cron
from ecoflow_worker.errors import ConfigError
from ecoflow_worker.utils.logger import get_logger

app = FastAPI(title="EcoFlow Telemetry API")
logger = get_logger(__name__)

app.include_router(cron.router)

@app.get("/")
def root():
    return {"status": "EcoFlow telemetry backend running"}


@app.exception_handler(ConfigError)
async def config_exception_handler(request: Request, exc: ConfigError):
    logger.error("config_missing", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={
            "code": 500,
            "message": str(exc)
        }
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for err in exc.errors():
        field = err["loc"][-1]
        errors[field] = err["msg"]

    return JSONResponse(
        status_code=422,
        content={
            "code": 422,
            "message": "Validation error",
            "errors": errors
        }
    )
