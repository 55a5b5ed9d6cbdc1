from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from invoicing.api.v1.api import api_router
from invoicing.core.config import settings
from invoicing.core.errors import DomainError, ErrorKind
from invoicing.core.logging import configure_logging
from invoicing.db.mongo import close_mongo_connection, connect_to_mongo

ERROR_STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CURRENCY_MISMATCH: 400,
    ErrorKind.CAPACITY: 422,
    ErrorKind.OVERPAYMENT: 422,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_STATE: 409,
    ErrorKind.CONFLICT: 409,
}

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_mongo()
    yield
    await close_mongo_connection()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(
        status_code=ERROR_STATUS_CODES.get(exc.kind, 400),
        content={"success": False, "error": exc.to_dict()},
    )


@app.get("/")
async def root():
    return {"message": "Welcome to the Invoice Ledger API"}

app.include_router(api_router, prefix=settings.API_V1_STR)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("invoicing.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
