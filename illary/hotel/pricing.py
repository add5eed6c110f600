"""
住宿天数与房费计算

日期一律按日历日处理：'YYYY-MM-DD' 拆成年/月/日整数再相减，
不经过任何时区或时刻换算，避免跨时区时少算或多算一晚。
"""
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Dict, Optional, Tuple, Union

from illary.models.schemas import PriceQuote


DateLike = Union[date, str, None]
Money = Union[Decimal, int, float, str]

CENTS = Decimal("0.01")

CHECK_IN_FIELD = "checkInDate"
CHECK_OUT_FIELD = "checkOutDate"


class BookingValidationError(ValueError):
    """客户端可检测的预订规则违规（缺日期、零晚/负晚、房间不可订等）"""

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.field_errors = field_errors or {}


def parse_calendar_date(value: DateLike) -> Optional[date]:
    """
    解析为日历日

    Args:
        value: date / datetime / 'YYYY-MM-DD'（允许带 'T...' 时间部分，忽略）

    Returns:
        date，空值返回 None

    Raises:
        ValueError: 格式不合法
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None
    day_part = text.split("T")[0]
    parts = day_part.split("-")
    if len(parts) != 3:
        raise ValueError(f"Fecha inválida: {value!r}")
    try:
        year, month, day = (int(p) for p in parts)
        return date(year, month, day)
    except ValueError:
        raise ValueError(f"Fecha inválida: {value!r}")


def stay_days(check_in: DateLike, check_out: DateLike) -> Optional[int]:
    """退房日与入住日之间的日历日差（可为 0 或负数），任一缺失返回 None"""
    start = parse_calendar_date(check_in)
    end = parse_calendar_date(check_out)
    if start is None or end is None:
        return None
    return (end - start).days


def nights(check_in: DateLike, check_out: DateLike) -> int:
    """
    计费晚数，最少 1 晚

    任一日期缺失时返回 1，保证界面不会出现 0 或负数晚数。
    这只是展示用的下限：零晚/负晚的提交必须先经过 validate_stay 拒绝。
    """
    days = stay_days(check_in, check_out)
    if days is None:
        return 1
    return max(days, 1)


def to_money(value: Money) -> Decimal:
    """转换为 Decimal 金额，拒绝负数"""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"Precio inválido: {value!r}")
    if amount < 0:
        raise ValueError("El precio por noche no puede ser negativo")
    return amount


def total_amount(check_in: DateLike, check_out: DateLike, price_per_night: Money) -> Decimal:
    """总房费 = 晚数 × 每晚价格，保留两位小数"""
    amount = to_money(price_per_night) * nights(check_in, check_out)
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def validate_stay(check_in: DateLike, check_out: DateLike) -> Tuple[date, date]:
    """
    校验入住/退房日期，返回解析后的日期

    Raises:
        BookingValidationError: 缺少日期、格式错误或退房不晚于入住
    """
    field_errors: Dict[str, str] = {}
    start = end = None

    try:
        start = parse_calendar_date(check_in)
        if start is None:
            field_errors[CHECK_IN_FIELD] = "La fecha de entrada es requerida"
    except ValueError:
        field_errors[CHECK_IN_FIELD] = "La fecha de entrada no es válida"

    try:
        end = parse_calendar_date(check_out)
        if end is None:
            field_errors[CHECK_OUT_FIELD] = "La fecha de salida es requerida"
    except ValueError:
        field_errors[CHECK_OUT_FIELD] = "La fecha de salida no es válida"

    if field_errors:
        raise BookingValidationError("Por favor, corrige los errores en el formulario.", field_errors)

    if end <= start:
        raise BookingValidationError(
            "La estadía debe ser de al menos una noche.",
            {CHECK_OUT_FIELD: "La fecha de salida debe ser posterior a la fecha de entrada"},
        )
    return start, end


def quote(check_in: DateLike, check_out: DateLike, price_per_night: Money,
          currency: str = "S/") -> PriceQuote:
    """校验日期后给出报价"""
    start, end = validate_stay(check_in, check_out)
    price = to_money(price_per_night)
    return PriceQuote(
        check_in_date=start,
        check_out_date=end,
        nights=nights(start, end),
        price_per_night=price,
        total_amount=total_amount(start, end, price),
        currency=currency,
    )
