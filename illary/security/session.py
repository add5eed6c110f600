"""
会话上下文

显式构造、通过依赖注入传递的会话对象，替代全局可变状态。
生命周期：启动时从持久化存储读取令牌 -> resolve 当前用户 -> login/logout/invalidate。
令牌持久化在固定键 access_token 下。
"""
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional
import json
import logging
import os
import time

from jose import JWTError, jwt

from illary.models.schemas import CurrentUser

logger = logging.getLogger(__name__)

TOKEN_KEY = "access_token"

SessionListener = Callable[["SessionContext"], None]


# ============== 令牌存储 ==============

class TokenStore(ABC):
    """客户端令牌存储接口"""

    @abstractmethod
    def get(self) -> Optional[str]:
        """读取令牌"""

    @abstractmethod
    def set(self, token: str) -> None:
        """保存令牌"""

    @abstractmethod
    def clear(self) -> None:
        """删除令牌"""


class MemoryTokenStore(TokenStore):
    """进程内存储（测试、一次性脚本）"""

    def __init__(self, token: Optional[str] = None):
        self._data: Dict[str, str] = {}
        if token:
            self._data[TOKEN_KEY] = token

    def get(self) -> Optional[str]:
        return self._data.get(TOKEN_KEY)

    def set(self, token: str) -> None:
        self._data[TOKEN_KEY] = token

    def clear(self) -> None:
        self._data.pop(TOKEN_KEY, None)


class FileTokenStore(TokenStore):
    """JSON 文件存储（命令行客户端）"""

    def __init__(self, path: str):
        self.path = path

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable session file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self) -> Optional[str]:
        token = self._read().get(TOKEN_KEY)
        return token if isinstance(token, str) and token else None

    def set(self, token: str) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        data = self._read()
        data[TOKEN_KEY] = token
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.chmod(self.path, 0o600)

    def clear(self) -> None:
        data = self._read()
        if TOKEN_KEY not in data:
            return
        data.pop(TOKEN_KEY)
        if data:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f)
        else:
            os.remove(self.path)


def token_expired(token: str, now: Optional[float] = None) -> bool:
    """
    根据 JWT 的 exp 声明判断令牌是否已过期（不校验签名）

    不透明令牌（非 JWT）或没有 exp 时返回 False，交给 API 判定。
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return False
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        return False
    return exp <= (now if now is not None else time.time())


# ============== 会话上下文 ==============

class SessionContext:
    """
    会话上下文

    Attributes:
        token: Bearer 令牌
        user: 已解析的用户声明（未解析时为 None）
        resolved: 会话是否已解析完成（False 即 loading）

    变化时通知所有订阅者（AuthGuard 据此重新计算状态）。
    """

    def __init__(self, store: Optional[TokenStore] = None):
        self.store = store or MemoryTokenStore()
        self.token: Optional[str] = None
        self.user: Optional[CurrentUser] = None
        self.resolved = False
        self._listeners: List[SessionListener] = []

    @classmethod
    def from_storage(cls, store: TokenStore) -> "SessionContext":
        """从持久化存储初始化；无令牌或令牌已过期时直接视为已解析的匿名会话"""
        session = cls(store)
        token = store.get()
        if token and token_expired(token):
            logger.info("Stored token expired, clearing session")
            store.clear()
            token = None
        session.token = token
        session.resolved = token is None
        return session

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and self.user is not None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """订阅会话变化，返回取消订阅函数"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def resolve(self, user: CurrentUser) -> None:
        """会话解析完成（/users/me 返回）"""
        self.user = user
        self.resolved = True
        self._notify()

    def login(self, token: str, user: CurrentUser) -> None:
        """登录成功：持久化令牌并设置用户"""
        self.store.set(token)
        self.token = token
        self.user = user
        self.resolved = True
        self._notify()

    def logout(self) -> None:
        """登出：清除令牌与用户"""
        self.store.clear()
        self.token = None
        self.user = None
        self.resolved = True
        self._notify()

    def invalidate(self) -> None:
        """检测到令牌失效（401）"""
        logger.info("Session invalidated")
        self.logout()

    def __repr__(self) -> str:
        login = self.user.login if self.user else None
        return f"SessionContext(token={'set' if self.token else None}, user={login!r}, resolved={self.resolved})"
