import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from services.school_management.api.auth_router import router as auth_router
from services.school_management.api.super_admin_router import router as superadmin_router
from services.school_management.api.tutor_router import router as tutor_router
from services.school_management.api.grade_router import router as grade_router
from services.school_management.api.assignment_router import router as assignment_router
from services.school_management.api.school_stats_router import router as school_stats_router
from shared import config
from shared.logging import setup_logging

API_PREFIX = "/api/v1"

setup_logging(config.LOG_LEVEL, config.LOG_FILE)
logger = logging.getLogger(__name__)

app = FastAPI(title="School Admin Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Every error body carries a "message"
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    content = exc.detail if isinstance(exc.detail, dict) else {"message": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"message": "Invalid request", "detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"message": "Internal server error"})


@app.get("/")
def health_check():
    return {"status": "School Admin Backend is running ✅"}


app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(superadmin_router, prefix=API_PREFIX)
app.include_router(tutor_router, prefix=API_PREFIX)
app.include_router(grade_router, prefix=API_PREFIX)
app.include_router(assignment_router, prefix=API_PREFIX)
app.include_router(school_stats_router, prefix=API_PREFIX)
