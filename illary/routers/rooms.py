"""
房间浏览路由（公开）
"""
from typing import List, Optional
from fastapi import APIRouter, Depends

from illary.models.schemas import RoomView
from illary.security.auth import get_api_client
from illary.services.api_client import ApiClient
from illary.services.room_service import RoomService, to_view

router = APIRouter(prefix="/rooms", tags=["房间浏览"])


@router.get("", response_model=List[RoomView])
def list_rooms(status: Optional[str] = None, api: ApiClient = Depends(get_api_client)):
    """获取房间列表（附带状态标签）"""
    return RoomService(api).list_views(status)


@router.get("/{room_id}", response_model=RoomView)
def get_room(room_id: int, api: ApiClient = Depends(get_api_client)):
    """获取房间详情"""
    return to_view(RoomService(api).get(room_id))
