"""
认证服务
登录、当前会话解析、登出；会话对象的填充方（闸门本身不发请求）
"""
from typing import Any, Optional
import logging

from illary.models.schemas import CurrentUser, LoginRequest, LoginResult
from illary.security.session import SessionContext
from illary.services.api_client import ApiClient, ApiError, AuthenticationError, ServiceUnavailableError

logger = logging.getLogger(__name__)


def _user_from_payload(data: Any) -> CurrentUser:
    """/users/me 可能返回 {user, roles} 或扁平结构"""
    if isinstance(data, dict) and isinstance(data.get("user"), dict):
        body = dict(data["user"])
        body["roles"] = data.get("roles") or body.get("roles") or []
        return CurrentUser.model_validate(body)
    body = dict(data or {})
    body["roles"] = body.get("roles") or []
    return CurrentUser.model_validate(body)


class AuthService:
    """认证服务"""

    def __init__(self, api: ApiClient):
        self.api = api

    def login(self, credentials: LoginRequest) -> LoginResult:
        """登录：顶层 roles 合并进用户声明"""
        data = self.api.post("/users/login", json=credentials.model_dump()) or {}
        return LoginResult(
            access_token=data["access_token"],
            token_type=data.get("token_type") or "bearer",
            user=_user_from_payload({"user": data.get("user") or {}, "roles": data.get("roles")}),
        )

    def current_user(self, token: str) -> CurrentUser:
        """用令牌获取当前用户"""
        return _user_from_payload(self.api.with_token(token).get("/users/me"))

    def logout(self, token: str) -> None:
        """通知 API 登出"""
        self.api.with_token(token).post("/users/logout", json={})

    # ============== 会话生命周期 ==============

    def resolve_session(self, session: SessionContext) -> SessionContext:
        """
        解析会话：有令牌时请求 /users/me

        401 视为明确失败，会话失效（-> unauthenticated）；
        网络错误继续向上抛出，会话保持 loading。
        """
        if session.resolved:
            return session
        if not session.token:
            session.logout()
            return session
        try:
            user = self.current_user(session.token)
        except AuthenticationError:
            session.invalidate()
            return session
        session.resolve(user)
        return session

    def sign_in(self, session: SessionContext, credentials: LoginRequest) -> LoginResult:
        """登录并写入会话"""
        result = self.login(credentials)
        session.login(result.access_token, result.user)
        logger.info(f"User {result.user.login} signed in")
        return result

    def sign_out(self, session: SessionContext) -> Optional[str]:
        """
        登出：远端登出失败只记录警告，本地会话总是清除

        Returns:
            远端登出失败时的错误消息
        """
        error = None
        if session.token:
            try:
                self.logout(session.token)
            except (ApiError, ServiceUnavailableError) as e:
                logger.warning(f"Remote logout failed: {e.message}")
                error = e.message
        session.logout()
        return error
