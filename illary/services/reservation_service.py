"""
预订服务
客人视角返回 Reservation，管理端返回带客人信息的 ReservationWithUser
"""
from typing import List

from illary.models.schemas import Reservation, ReservationWithUser
from illary.services.api_client import as_list
from illary.services.resource_service import ResourceService


class ReservationService(ResourceService[Reservation]):
    """预订服务"""

    model = Reservation
    collection_path = "/reservations/"
    item_path = "/reservations/{id}"

    def list(self) -> List[Reservation]:
        return self.list_my()

    def list_all(self) -> List[ReservationWithUser]:
        """全部预订（管理端）"""
        payload = self.api.get("/reservations/all")
        return [ReservationWithUser.model_validate(item) for item in as_list(payload, self.source)]

    def list_my(self) -> List[Reservation]:
        """当前用户的预订"""
        payload = self.api.get("/reservations/my")
        return [Reservation.model_validate(item) for item in as_list(payload, self.source)]
