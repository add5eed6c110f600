"""
认证路由
登录成功后令牌写入 HttpOnly Cookie，浏览器端不接触令牌
"""
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from illary.config import settings
from illary.models.schemas import ErrorResponse, LoginRequest, UserRegistration
from illary.security.auth import get_api_client, request_token, require_authenticated
from illary.security.session import MemoryTokenStore, SessionContext
from illary.services.api_client import ApiClient
from illary.services.auth_service import AuthService
from illary.services.user_service import UserService, validate_registration

router = APIRouter(prefix="/auth", tags=["认证"])


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(settings.SESSION_COOKIE_NAME)


@router.post("/login")
def login(data: LoginRequest, response: Response, api: ApiClient = Depends(get_api_client)):
    """用户登录"""
    session = SessionContext(MemoryTokenStore())
    result = AuthService(api).sign_in(session, data)
    set_session_cookie(response, result.access_token)
    return {"user": result.user, "redirect": settings.HOME_PATH}


@router.post("/logout")
def logout(request: Request, response: Response, api: ApiClient = Depends(get_api_client)):
    """登出：远端失败只返回提示，Cookie 总是清除"""
    session = SessionContext.from_storage(MemoryTokenStore(request_token(request)))
    warning = AuthService(api).sign_out(session)
    clear_session_cookie(response)
    return {"message": "Sesión cerrada", "warning": warning, "redirect": settings.LOGIN_PATH}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(data: UserRegistration, api: ApiClient = Depends(get_api_client)):
    """注册：先做客户端校验，再提交 API"""
    field_errors = validate_registration(data)
    if field_errors:
        body = ErrorResponse(general_error="Por favor, corrige los errores en el formulario.",
                             field_errors=field_errors)
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                            content=body.model_dump(by_alias=True, exclude_none=True))
    UserService(api).register(data)
    return {"message": "Registro exitoso. Puedes iniciar sesión ahora.",
            "redirect": settings.LOGIN_PATH}


@router.get("/me")
def get_current_user_info(session: SessionContext = Depends(require_authenticated)):
    """获取当前用户信息"""
    return session.user
