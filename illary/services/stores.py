"""
客户端资源状态（列表 + loading/error/saving 标志）

每个写操作只在 API 调用成功后才修改本地列表；失败时原状态保持不变、
异常向上抛给调用方转为通知。saving 标志期间拒绝重复提交。
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, TypeVar, Union
import logging

from illary.models.schemas import Reservation, ReservationWithUser
from illary.services.api_client import ApiError, AuthenticationError, ServiceUnavailableError
from illary.services.reservation_service import ReservationService
from illary.services.resource_service import Payload, ResourceService

logger = logging.getLogger(__name__)

T = TypeVar("T")

ReservationEntry = Union[Reservation, ReservationWithUser]


class StoreBusyError(RuntimeError):
    """上一次写操作尚未完成"""

    def __init__(self):
        super().__init__("Ya hay una operación en curso. Espera a que termine.")


@dataclass
class StoreState(Generic[T]):
    """资源状态"""
    items: List[T] = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None
    saving: bool = False


class ResourceStore(Generic[T]):
    """
    单个资源集合的客户端状态

    Example:
        >>> store = ResourceStore(RoomService(api), "No se pudieron cargar las habitaciones.")
        >>> store.load()
        >>> store.create(payload)   # 成功后插入列表头部
    """

    def __init__(self, service: ResourceService, load_error_message: str):
        self.service = service
        self.load_error_message = load_error_message
        self.state: StoreState = StoreState()

    @property
    def items(self) -> List[T]:
        return self.state.items

    def _load_with(self, fetch: Callable[[], List[Any]]) -> List[Any]:
        self.state.loading = True
        self.state.error = None
        try:
            items = fetch()
        except AuthenticationError:
            # 令牌被拒绝不是加载错误，交给调用方强制登出
            self.state.loading = False
            raise
        except (ApiError, ServiceUnavailableError) as e:
            logger.error(f"{type(self.service).__name__} load failed: {e}")
            self.state.loading = False
            self.state.error = self._load_error(e)
            return self.state.items
        self.state.items = list(items)
        self.state.loading = False
        return self.state.items

    def _load_error(self, error: Exception) -> str:
        # 没有可读 detail 的 API 错误显示固定提示
        if isinstance(error, ApiError) and not isinstance(error.detail, str):
            return self.load_error_message
        return getattr(error, "message", None) or self.load_error_message

    def load(self) -> List[T]:
        """重新加载；失败时记录 error，只有 401 向上抛出"""
        return self._load_with(self.service.list)

    def _mutate(self, call: Callable[[], Any]) -> Any:
        if self.state.saving:
            raise StoreBusyError()
        self.state.saving = True
        try:
            return call()
        finally:
            self.state.saving = False

    def create(self, payload: Payload) -> T:
        """创建，成功后插入列表头部"""
        created = self._mutate(lambda: self.service.create(payload))
        self.state.items = [created] + self.state.items
        return created

    def update(self, item_id: int, payload: Payload) -> T:
        """更新，成功后替换同 id 的条目"""
        updated = self._mutate(lambda: self.service.update(item_id, payload))
        self.state.items = [self._merge(item, updated) if item.id == updated.id else item
                            for item in self.state.items]
        return updated

    def delete(self, item_id: int) -> None:
        """删除，成功后移除"""
        self._mutate(lambda: self.service.delete(item_id))
        self.state.items = [item for item in self.state.items if item.id != item_id]

    def _merge(self, existing: T, updated: T) -> T:
        return updated


class ReservationStore(ResourceStore[ReservationEntry]):
    """预订状态：管理端列表带客人信息，更新后保留"""

    service: ReservationService

    def __init__(self, service: ReservationService):
        super().__init__(service, "No se pudieron cargar las reservaciones.")

    def load_all(self) -> List[ReservationEntry]:
        """管理端：全部预订"""
        self.load_error_message = "No se pudieron cargar las reservaciones."
        return self._load_with(self.service.list_all)

    def load_my(self) -> List[ReservationEntry]:
        """客人：我的预订"""
        self.load_error_message = "No se pudieron cargar tus reservaciones."
        return self._load_with(self.service.list_my)

    def _merge(self, existing: ReservationEntry, updated: ReservationEntry) -> ReservationEntry:
        # API 更新返回的预订不含客人信息
        if existing.kind == "reservation_with_user" and updated.kind == "reservation":
            return ReservationWithUser.attach(updated, existing.user)
        return updated
