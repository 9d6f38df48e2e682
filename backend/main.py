from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
import uvicorn
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager

from core.auth import fastapi_users, auth_backend
from core.config import settings
from core.errors import LedgerError
from core.logging_config import configure_logging
from db.database import create_db_and_tables
from routers.inventory import router as inventory_router
from routers.products import router as products_router
from routers.storages import router as storages_router
from schemas.users import UserRead, UserCreate, UserUpdate

# Error kinds for plain HTTPExceptions (auth failures, master-data conflicts)
HTTP_ERROR_KINDS = {
    400: "BadRequest",
    401: "Unauthorized",
    403: "Forbidden",
    404: "NotFound",
    409: "Conflict",
    500: "InternalError",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    await create_db_and_tables()
    yield


app = FastAPI(
    title="Warehouse Inventory API",
    description="API for warehouse inventories, storage units and products with a capacity ledger",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    content = {
        "kind": HTTP_ERROR_KINDS.get(exc.status_code, "HTTPError"),
        "message": str(exc.detail),
        "detail": exc.detail,
    }
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # The rejected input can be NaN or Infinity, which JSON cannot carry
    errors = jsonable_encoder([{k: v for k, v in err.items() if k not in ("input", "ctx")} for err in exc.errors()])
    message = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', []) if p != 'body')}: {err.get('msg')}" for err in errors
    )
    return JSONResponse(
        status_code=422,
        content={"kind": "InvalidRequest", "message": message or "Invalid request", "detail": errors},
    )


# Authentication routes (fastapi-users)
app.include_router(fastapi_users.get_auth_router(auth_backend), prefix="/auth/jwt", tags=["auth"],)
app.include_router(fastapi_users.get_register_router(UserRead, UserCreate), prefix="/auth", tags=["auth"])
app.include_router(fastapi_users.get_reset_password_router(), prefix="/auth", tags=["auth"])
app.include_router(fastapi_users.get_verify_router(UserRead), prefix="/auth", tags=["auth"])
app.include_router(fastapi_users.get_users_router(UserRead, UserUpdate), prefix="/users", tags=["users"])

# Warehouse routes
app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])
app.include_router(products_router, prefix="/products", tags=["products"])
app.include_router(storages_router, prefix="/storages", tags=["storages"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
