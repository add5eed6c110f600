"""
房间与房型服务
"""
from typing import List, Optional

from illary.models.ontology import RoomStatus, get_status_config
from illary.models.schemas import Room, RoomType, RoomView
from illary.services.resource_service import ResourceService


class RoomService(ResourceService[Room]):
    """房间服务"""

    model = Room
    collection_path = "/rooms"
    item_path = "/rooms/{id}"

    def list_views(self, status: Optional[str] = None) -> List[RoomView]:
        """房间浏览：附带状态标签，可按状态筛选"""
        rooms = self.list()
        if status:
            rooms = [r for r in rooms if r.status.lower() == status.lower()]
        return [to_view(r) for r in rooms]


class RoomTypeService(ResourceService[RoomType]):
    """房型服务"""

    model = RoomType
    collection_path = "/room-types/"
    item_path = "/room-types/{id}"


def is_bookable(room: Room) -> bool:
    """只有空闲房间可以预订"""
    return (room.status or "").lower() == RoomStatus.AVAILABLE.value


def to_view(room: Room) -> RoomView:
    return RoomView(
        **room.model_dump(),
        status_label=get_status_config(room.status).label,
        bookable=is_bookable(room),
    )
