"""
Web 层认证依赖
从 Cookie（或 Authorization 头）取令牌，构造并解析本次请求的会话，
再用授权闸门决定是否放行
"""
from typing import Optional
import logging

import httpx
from fastapi import Depends, Request

from illary.config import settings
from illary.security.guard import GuardError, GuardState, evaluate_guard
from illary.security.session import MemoryTokenStore, SessionContext
from illary.services.api_client import ApiClient
from illary.services.auth_service import AuthService

logger = logging.getLogger(__name__)


def get_http_client(request: Request) -> httpx.Client:
    """应用级共享的 httpx 客户端（lifespan 中创建）"""
    return request.app.state.http_client


def get_api_client(http: httpx.Client = Depends(get_http_client)) -> ApiClient:
    """匿名 API 客户端"""
    return ApiClient(http)


def request_token(request: Request) -> Optional[str]:
    """Cookie 优先，其次 Authorization: Bearer"""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def get_session_context(request: Request, api: ApiClient = Depends(get_api_client)) -> SessionContext:
    """
    本次请求的会话

    令牌过期在本地即判定为匿名；否则请求 /users/me 解析用户，
    401 使会话失效，网络错误向上抛出（503）。
    """
    session = SessionContext.from_storage(MemoryTokenStore(request_token(request)))
    return AuthService(api).resolve_session(session)


def get_user_api(session: SessionContext = Depends(get_session_context),
                 api: ApiClient = Depends(get_api_client)) -> ApiClient:
    """携带当前会话令牌的 API 客户端"""
    return api.with_token(session.token)


def _require(session: SessionContext, require_admin: bool) -> SessionContext:
    state = evaluate_guard(session, require_admin=require_admin)
    if state != GuardState.READY:
        logger.info(f"Request blocked by guard: {state.value}")
        raise GuardError(state)
    return session


def require_authenticated(session: SessionContext = Depends(get_session_context)) -> SessionContext:
    """要求已登录"""
    return _require(session, require_admin=False)


def require_admin(session: SessionContext = Depends(get_session_context)) -> SessionContext:
    """要求管理员"""
    return _require(session, require_admin=True)
