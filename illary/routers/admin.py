"""
管理后台路由
全部经过授权闸门（require_admin），数据读写直接转发远端 API
"""
from typing import List
from fastapi import APIRouter, Depends

from illary.hotel.pricing import total_amount, validate_stay
from illary.models.schemas import (
    Establishment, EstablishmentPayload,
    RoomType, RoomTypePayload, RoomTypeUpdate,
    Room, RoomPayload,
    ReservationWithUser, ReservationItem, ReservationPayload, ReservationUpdatePayload,
    UserOption
)
from illary.security.auth import get_user_api, require_admin
from illary.security.session import SessionContext
from illary.services.api_client import ApiClient
from illary.services.establishment_service import EstablishmentService
from illary.services.reservation_service import ReservationService
from illary.services.room_service import RoomService, RoomTypeService
from illary.services.user_service import UserService

router = APIRouter(prefix="/admin", tags=["管理后台"], dependencies=[Depends(require_admin)])


# ============== 酒店管理 ==============

@router.get("/establishments", response_model=List[Establishment])
def list_establishments(api: ApiClient = Depends(get_user_api)):
    """获取酒店列表"""
    return EstablishmentService(api).list()


@router.get("/establishments/{establishment_id}", response_model=Establishment)
def get_establishment(establishment_id: int, api: ApiClient = Depends(get_user_api)):
    """获取酒店详情"""
    return EstablishmentService(api).get(establishment_id)


@router.post("/establishments", response_model=Establishment)
def create_establishment(data: EstablishmentPayload, api: ApiClient = Depends(get_user_api)):
    """创建酒店"""
    return EstablishmentService(api).create(data)


@router.put("/establishments/{establishment_id}", response_model=Establishment)
def update_establishment(establishment_id: int, data: EstablishmentPayload,
                         api: ApiClient = Depends(get_user_api)):
    """更新酒店"""
    return EstablishmentService(api).update(establishment_id, data)


@router.delete("/establishments/{establishment_id}")
def delete_establishment(establishment_id: int, api: ApiClient = Depends(get_user_api)):
    """删除酒店"""
    EstablishmentService(api).delete(establishment_id)
    return {"message": "Establecimiento eliminado"}


# ============== 房型管理 ==============

@router.get("/room-types", response_model=List[RoomType])
def list_room_types(api: ApiClient = Depends(get_user_api)):
    """获取房型列表"""
    return RoomTypeService(api).list()


@router.get("/room-types/{room_type_id}", response_model=RoomType)
def get_room_type(room_type_id: int, api: ApiClient = Depends(get_user_api)):
    """获取房型详情"""
    return RoomTypeService(api).get(room_type_id)


@router.post("/room-types", response_model=RoomType)
def create_room_type(
    data: RoomTypePayload,
    session: SessionContext = Depends(require_admin),
    api: ApiClient = Depends(get_user_api)
):
    """创建房型"""
    if data.created_by is None and session.user is not None:
        data.created_by = session.user.id
    return RoomTypeService(api).create(data)


@router.put("/room-types/{room_type_id}", response_model=RoomType)
def update_room_type(room_type_id: int, data: RoomTypeUpdate, api: ApiClient = Depends(get_user_api)):
    """更新房型"""
    return RoomTypeService(api).update(room_type_id, data)


@router.delete("/room-types/{room_type_id}")
def delete_room_type(room_type_id: int, api: ApiClient = Depends(get_user_api)):
    """删除房型"""
    RoomTypeService(api).delete(room_type_id)
    return {"message": "Tipo de habitación eliminado"}


# ============== 房间管理 ==============

@router.get("/rooms", response_model=List[Room])
def list_rooms(api: ApiClient = Depends(get_user_api)):
    """获取房间列表"""
    return RoomService(api).list()


@router.get("/rooms/{room_id}", response_model=Room)
def get_room(room_id: int, api: ApiClient = Depends(get_user_api)):
    """获取房间详情"""
    return RoomService(api).get(room_id)


@router.post("/rooms", response_model=Room)
def create_room(
    data: RoomPayload,
    session: SessionContext = Depends(require_admin),
    api: ApiClient = Depends(get_user_api)
):
    """创建房间"""
    if data.created_by is None and session.user is not None:
        data.created_by = session.user.id
    return RoomService(api).create(data)


@router.put("/rooms/{room_id}", response_model=Room)
def update_room(room_id: int, data: RoomPayload, api: ApiClient = Depends(get_user_api)):
    """更新房间"""
    return RoomService(api).update(room_id, data)


@router.delete("/rooms/{room_id}")
def delete_room(room_id: int, api: ApiClient = Depends(get_user_api)):
    """删除房间"""
    RoomService(api).delete(room_id)
    return {"message": "Habitación eliminada"}


# ============== 预订管理 ==============

@router.get("/reservations", response_model=List[ReservationWithUser])
def list_reservations(api: ApiClient = Depends(get_user_api)):
    """获取全部预订（带客人信息）"""
    return ReservationService(api).list_all()


@router.get("/reservations/{reservation_id}", response_model=ReservationItem)
def get_reservation(reservation_id: int, api: ApiClient = Depends(get_user_api)):
    """获取预订详情"""
    return ReservationService(api).get(reservation_id)


@router.post("/reservations", response_model=ReservationItem)
def create_reservation(data: ReservationPayload, api: ApiClient = Depends(get_user_api)):
    """代客创建预订，日期先校验，总价按所选房间重算"""
    start, end = validate_stay(data.check_in_date, data.check_out_date)
    room = RoomService(api).get(data.room_id)
    data.total_amount = total_amount(start, end, room.price_per_night)
    return ReservationService(api).create(data)


@router.put("/reservations/{reservation_id}", response_model=ReservationItem)
def update_reservation(reservation_id: int, data: ReservationUpdatePayload,
                       api: ApiClient = Depends(get_user_api)):
    """更新预订；换房或改日期时校验实际生效的日期并重算总价"""
    if data.room_id is not None or data.check_in_date is not None or data.check_out_date is not None:
        current = ReservationService(api).get(reservation_id)
        start, end = validate_stay(data.check_in_date or current.check_in_date,
                                   data.check_out_date or current.check_out_date)
        room = RoomService(api).get(data.room_id or current.room_id)
        data.total_amount = total_amount(start, end, room.price_per_night)
    return ReservationService(api).update(reservation_id, data)


@router.delete("/reservations/{reservation_id}")
def delete_reservation(reservation_id: int, api: ApiClient = Depends(get_user_api)):
    """删除预订"""
    ReservationService(api).delete(reservation_id)
    return {"message": "Reservación eliminada"}


# ============== 用户 ==============

@router.get("/users", response_model=List[UserOption])
def list_users(api: ApiClient = Depends(get_user_api)):
    """用户下拉选项"""
    return UserService(api).list()
