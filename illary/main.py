"""
Illary 门户主应用入口
面向浏览器的 BFF：会话放在 Cookie 中，所有数据读写转发到远端酒店 API
"""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from illary.config import settings
from illary.hotel.pricing import BookingValidationError
from illary.models.schemas import ErrorResponse
from illary.routers import auth, rooms, reservations, admin
from illary.security.guard import GuardError, GuardState
from illary.services.api_client import ApiError, AuthenticationError, ServiceUnavailableError, create_http_client
from illary.services.error_parser import parse_server_error

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理：共享 httpx 客户端"""
    configure_logging()
    app.state.http_client = create_http_client()
    logger.info(f"{settings.APP_NAME} started, API base: {settings.API_BASE_URL}")

    yield

    app.state.http_client.close()


# 创建应用
app = FastAPI(
    title=settings.APP_NAME,
    description="Portal de reservas y administración del hotel",
    version="1.0.0",
    lifespan=lifespan
)

# CORS 配置
if settings.FRONTEND_ORIGIN:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# 注册路由
app.include_router(auth.router)
app.include_router(rooms.router)
app.include_router(reservations.router)
app.include_router(admin.router)


def _error_body(body: ErrorResponse) -> dict:
    return body.model_dump(by_alias=True, exclude_none=True)


# ============== 异常处理 ==============

@app.exception_handler(GuardError)
def guard_error_handler(request: Request, exc: GuardError):
    """闸门拒绝：未登录 401（清除 Cookie），无权限 403"""
    code = status.HTTP_401_UNAUTHORIZED if exc.state == GuardState.UNAUTHENTICATED else status.HTTP_403_FORBIDDEN
    response = JSONResponse(
        status_code=code,
        content=_error_body(ErrorResponse(general_error=exc.message, redirect=exc.redirect)),
    )
    if code == status.HTTP_401_UNAUTHORIZED:
        response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


@app.exception_handler(ServiceUnavailableError)
def service_unavailable_handler(request: Request, exc: ServiceUnavailableError):
    """远端 API 不可达：可重试"""
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body(ErrorResponse(general_error=exc.message, retry=True)),
    )


@app.exception_handler(ApiError)
def api_error_handler(request: Request, exc: ApiError):
    """远端 API 错误：解析为表单级/字段级提示，保留上游状态码"""
    parsed = parse_server_error(exc)
    body = ErrorResponse(general_error=parsed.general_error, field_errors=parsed.field_errors or None)
    if isinstance(exc, AuthenticationError):
        body.redirect = settings.LOGIN_PATH
    response = JSONResponse(status_code=exc.status_code, content=_error_body(body))
    if isinstance(exc, AuthenticationError):
        response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


@app.exception_handler(BookingValidationError)
def booking_validation_handler(request: Request, exc: BookingValidationError):
    """客户端可检测的预订规则违规"""
    body = ErrorResponse(general_error=exc.message, field_errors=exc.field_errors or None)
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=_error_body(body))


@app.get("/")
def root():
    """根路径"""
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
    }


@app.get("/health")
def health_check():
    """健康检查"""
    return {"status": "healthy"}
