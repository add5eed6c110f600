"""
授权闸门

状态: loading -> unauthenticated | unauthorized | ready
闸门本身不发请求，只消费由会话加载方填充的 SessionContext，
并在会话每次变化时重新计算。
"""
from enum import Enum
from typing import Callable, Optional
import logging

from illary.config import settings
from illary.models.schemas import CurrentUser
from illary.security.session import SessionContext

logger = logging.getLogger(__name__)


class GuardState(str, Enum):
    """闸门状态"""
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    UNAUTHORIZED = "unauthorized"
    READY = "ready"


GUARD_MESSAGES = {
    GuardState.LOADING: "Verificando permisos…",
    GuardState.UNAUTHENTICATED: "Necesitas iniciar sesión para acceder a esta sección.",
    GuardState.UNAUTHORIZED: "No tienes permisos de administrador para acceder a esta sección.",
    GuardState.READY: "",
}


def redirect_for(state: GuardState) -> Optional[str]:
    """非 ready 状态允许的唯一动作：重定向目标"""
    if state == GuardState.UNAUTHENTICATED:
        return settings.LOGIN_PATH
    if state == GuardState.UNAUTHORIZED:
        return settings.HOME_PATH
    return None


class GuardError(Exception):
    """闸门未就绪时拒绝操作"""

    def __init__(self, state: GuardState):
        super().__init__(GUARD_MESSAGES[state])
        self.state = state
        self.message = GUARD_MESSAGES[state]
        self.redirect = redirect_for(state)


def is_admin(user: CurrentUser, admin_role: Optional[str] = None) -> bool:
    """admin 标志为真，或角色列表包含管理员角色"""
    role = admin_role or settings.ADMIN_ROLE_NAME
    return user.admin is True or role in (user.roles or [])


def evaluate_guard(session: Optional[SessionContext], require_admin: bool = True) -> GuardState:
    """
    根据会话计算闸门状态

    Args:
        session: 会话上下文，None 表示尚未开始解析
        require_admin: False 时只要求已登录（客人预订流程）
    """
    if session is None or not session.resolved:
        return GuardState.LOADING
    if not session.token or session.user is None:
        return GuardState.UNAUTHENTICATED
    if require_admin and not is_admin(session.user):
        return GuardState.UNAUTHORIZED
    return GuardState.READY


class AuthGuard:
    """
    订阅会话变化的闸门

    Example:
        >>> guard = AuthGuard(session)
        >>> guard.state
        <GuardState.READY: 'ready'>
        >>> session.logout()
        >>> guard.state
        <GuardState.UNAUTHENTICATED: 'unauthenticated'>
    """

    def __init__(self, session: SessionContext, require_admin: bool = True,
                 on_change: Optional[Callable[[GuardState], None]] = None):
        self._session = session
        self._require_admin = require_admin
        self._on_change = on_change
        self._state = evaluate_guard(session, require_admin)
        self._unsubscribe = session.subscribe(self._recompute)

    @property
    def state(self) -> GuardState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state == GuardState.READY

    def _recompute(self, session: SessionContext) -> None:
        new_state = evaluate_guard(session, self._require_admin)
        if new_state != self._state:
            logger.debug(f"Guard state {self._state.value} -> {new_state.value}")
            self._state = new_state
            if self._on_change:
                self._on_change(new_state)

    def check(self) -> None:
        """可变操作前调用；未就绪时抛出 GuardError"""
        if self._state != GuardState.READY:
            raise GuardError(self._state)

    def close(self) -> None:
        """取消订阅"""
        self._unsubscribe()
