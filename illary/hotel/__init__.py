"""
酒店领域逻辑：房费计算与预订校验
"""
from illary.hotel.pricing import (
    BookingValidationError, parse_calendar_date, nights, total_amount,
    validate_stay, quote
)

__all__ = [
    'BookingValidationError', 'parse_calendar_date', 'nights',
    'total_amount', 'validate_stay', 'quote'
]
