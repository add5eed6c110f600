"""
客人预订流程
选房 -> 报价 -> 校验 -> 提交 -> 通知（成功附带 API 返回的 aiNotes）
"""
from dataclasses import dataclass, field
from typing import Dict, Optional
import logging

from illary.config import settings
from illary.hotel.pricing import (
    BookingValidationError, quote as price_quote, total_amount, validate_stay
)
from illary.models.ontology import get_status_config
from illary.models.schemas import BookingForm, PriceQuote, Reservation, ReservationPayload, Room
from illary.security.guard import GuardError, evaluate_guard, GuardState
from illary.security.session import SessionContext
from illary.services.api_client import ApiError, AuthenticationError, ServiceUnavailableError
from illary.services.error_parser import parse_server_error
from illary.services.reservation_service import ReservationService
from illary.services.room_service import is_bookable

logger = logging.getLogger(__name__)

FORM_ERRORS_MESSAGE = "Por favor, corrige los errores en el formulario."
BOOKING_FAILED_MESSAGE = "Lo sentimos, hubo un problema al procesar tu reserva. Por favor, inténtalo nuevamente."


@dataclass
class Notification:
    """界面通知"""
    type: str
    message: str

    @classmethod
    def success(cls, message: str) -> "Notification":
        return cls("success", message)

    @classmethod
    def error(cls, message: str) -> "Notification":
        return cls("error", message)


@dataclass
class BookingOutcome:
    """一次预订提交的结果"""
    notification: Notification
    reservation: Optional[Reservation] = None
    field_errors: Dict[str, str] = field(default_factory=dict)
    general_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reservation is not None


def success_message(room: Room, reservation: Reservation) -> str:
    """成功提示，API 返回 aiNotes 时附在末尾"""
    ai_message = f" 🤖 {reservation.ai_notes}" if reservation.ai_notes else ""
    return (f"¡Excelente! Tu reserva para la habitación {room.room_number} "
            f"ha sido confirmada exitosamente.{ai_message}")


def check_room(room: Room, adults: int, children: int) -> None:
    """
    房间状态与入住人数校验

    Raises:
        BookingValidationError: 房间不可订或人数不合法
    """
    if not is_bookable(room):
        label = get_status_config(room.status).label
        raise BookingValidationError(
            f"La habitación {room.room_number} no está disponible ({label}).",
            {"roomId": "La habitación seleccionada no está disponible"},
        )

    field_errors: Dict[str, str] = {}
    if adults < 1:
        field_errors["adults"] = "Debe haber al menos un adulto"
    if children < 0:
        field_errors["children"] = "El número de niños no puede ser negativo"
    if not field_errors and adults + children > room.max_occupancy:
        field_errors["adults"] = f"La habitación admite como máximo {room.max_occupancy} huéspedes"
    if field_errors:
        raise BookingValidationError(FORM_ERRORS_MESSAGE, field_errors)


def failure_outcome(error: Exception) -> BookingOutcome:
    """把任意失败映射为错误通知"""
    if isinstance(error, BookingValidationError):
        return BookingOutcome(
            notification=Notification.error(error.message),
            field_errors=dict(error.field_errors),
            general_error=None if error.field_errors else error.message,
        )

    parsed = parse_server_error(error)
    if parsed.general_error:
        message = parsed.general_error
    elif parsed.has_field_errors:
        message = FORM_ERRORS_MESSAGE
    else:
        message = BOOKING_FAILED_MESSAGE
    return BookingOutcome(
        notification=Notification.error(message),
        field_errors=dict(parsed.field_errors),
        general_error=parsed.general_error,
    )


class BookingService:
    """
    预订流程服务

    Example:
        >>> booking = BookingService(ReservationService(api))
        >>> outcome = booking.book(session, room, BookingForm(check_in_date="2024-05-01",
        ...                                                   check_out_date="2024-05-04"))
        >>> outcome.notification.type
        'success'
    """

    def __init__(self, reservations: ReservationService, currency: Optional[str] = None):
        self.reservations = reservations
        self.currency = currency or settings.CURRENCY_SYMBOL

    def quote(self, room: Room, check_in, check_out) -> PriceQuote:
        """报价；日期不合法时抛 BookingValidationError"""
        return price_quote(check_in, check_out, room.price_per_night, self.currency)

    def prepare(self, room: Room, form: BookingForm) -> ReservationPayload:
        """校验表单并生成提交体（含计算出的总价）"""
        start, end = validate_stay(form.check_in_date, form.check_out_date)
        check_room(room, form.adults, form.children)
        return ReservationPayload(
            room_id=room.id,
            check_in_date=start,
            check_out_date=end,
            adults=form.adults,
            children=form.children,
            special_requests=form.special_requests or None,
            total_amount=total_amount(start, end, room.price_per_night),
            ai_notes="",
        )

    def book(self, session: SessionContext, room: Room, form: BookingForm) -> BookingOutcome:
        """
        提交预订

        Raises:
            GuardError: 会话未登录或令牌被 API 拒绝（只要求登录，不要求管理员）
        """
        state = evaluate_guard(session, require_admin=False)
        if state != GuardState.READY:
            raise GuardError(state)

        try:
            payload = self.prepare(room, form)
            reservation = self.reservations.create(payload)
        except AuthenticationError:
            session.invalidate()
            raise GuardError(GuardState.UNAUTHENTICATED)
        except (BookingValidationError, ApiError, ServiceUnavailableError) as e:
            logger.warning(f"Booking for room {room.room_number} failed: {e}")
            return failure_outcome(e)

        logger.info(f"Reservation {reservation.id} created for room {room.room_number}")
        return BookingOutcome(
            notification=Notification.success(success_message(room, reservation)),
            reservation=reservation,
        )
