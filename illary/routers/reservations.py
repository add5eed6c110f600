"""
客人预订路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from illary.models.schemas import BookingForm, BookingRequest, ErrorResponse, PriceQuote, Reservation
from illary.security.auth import get_api_client, get_user_api, require_authenticated
from illary.security.session import SessionContext
from illary.services.api_client import ApiClient
from illary.services.booking_service import BookingService
from illary.services.reservation_service import ReservationService
from illary.services.room_service import RoomService

router = APIRouter(prefix="/reservations", tags=["预订"])


@router.get("/quote", response_model=PriceQuote)
def quote_reservation(
    room_id: int,
    check_in_date: Optional[str] = None,
    check_out_date: Optional[str] = None,
    api: ApiClient = Depends(get_api_client)
):
    """报价：晚数、每晚价格、总价"""
    room = RoomService(api).get(room_id)
    return BookingService(ReservationService(api)).quote(room, check_in_date, check_out_date)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_reservation(
    data: BookingRequest,
    session: SessionContext = Depends(require_authenticated),
    api: ApiClient = Depends(get_user_api)
):
    """提交预订"""
    room = RoomService(api).get(data.room_id)
    form = BookingForm(**data.model_dump(exclude={"room_id"}))
    outcome = BookingService(ReservationService(api)).book(session, room, form)
    if not outcome.ok:
        body = ErrorResponse(general_error=outcome.general_error, field_errors=outcome.field_errors or None)
        content = body.model_dump(by_alias=True, exclude_none=True)
        content["notification"] = {"type": outcome.notification.type, "message": outcome.notification.message}
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)
    return {"notification": outcome.notification, "reservation": outcome.reservation}


@router.get("/my", response_model=List[Reservation])
def my_reservations(
    session: SessionContext = Depends(require_authenticated),
    api: ApiClient = Depends(get_user_api)
):
    """我的预订"""
    return ReservationService(api).list_my()
