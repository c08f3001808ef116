import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException
from starlette.middleware.sessions import SessionMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from catalog_admin.api.health import router as health_router
from catalog_admin.api.routes_products import router as products_router
from catalog_admin.config import settings
from catalog_admin.db import init_db
from catalog_admin.exceptions import (
    ConstraintViolation,
    InvalidQueryError,
    NotFoundError,
    ValidationError,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("Starting catalog admin...")
    init_db(reset=settings.RESET_DB)
    yield
    log.info("Shutting down catalog admin...")


app = FastAPI(title="Catalog Admin", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# signed cookie session, carries flash data across redirects
app.add_middleware(SessionMiddleware, secret_key=settings.SECRET_KEY)

app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(products_router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=422,
        content={"message": exc.message, "errors": exc.errors},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"][1:]) or str(err["loc"][0])
        errors.setdefault(field, []).append(err["msg"])
    return JSONResponse(
        status_code=422,
        content={"message": "The given data was invalid.", "errors": errors},
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"message": str(exc)})


@app.exception_handler(ConstraintViolation)
async def constraint_violation_handler(request: Request, exc: ConstraintViolation):
    content = {"message": str(exc)}
    if exc.field:
        content["errors"] = {exc.field: [str(exc)]}
    return JSONResponse(status_code=409, content=content)


@app.exception_handler(InvalidQueryError)
async def invalid_query_handler(request: Request, exc: InvalidQueryError):
    return JSONResponse(status_code=400, content={"message": str(exc)})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    log.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Server Error"})


if __name__ == "__main__":
    uvicorn.run("catalog_admin.main:app", host=settings.APP_HOST, port=settings.APP_PORT)
