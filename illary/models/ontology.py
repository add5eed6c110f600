"""
领域枚举与显示配置
实体的权威副本在远端 API，这里只定义客户端需要识别的状态值
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict


class RoomStatus(str, Enum):
    """房间状态"""
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"
    CLEANING = "cleaning"


class ReservationStatus(str, Enum):
    """预订状态"""
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"


class PaymentStatus(str, Enum):
    """支付状态"""
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class RecordStatus(str, Enum):
    """参考数据启用状态（房型、酒店、用户）"""
    ACTIVE = "A"
    INACTIVE = "I"


class DocumentType(str, Enum):
    """证件类型"""
    DNI = "DNI"
    CE = "CE"


@dataclass(frozen=True)
class StatusConfig:
    """状态的显示配置"""
    label: str
    tone: str


ROOM_STATUS_MAP: Dict[str, StatusConfig] = {
    RoomStatus.AVAILABLE.value: StatusConfig("Disponible", "emerald"),
    RoomStatus.MAINTENANCE.value: StatusConfig("Mantenimiento", "amber"),
    RoomStatus.OCCUPIED.value: StatusConfig("Ocupada", "rose"),
    RoomStatus.CLEANING.value: StatusConfig("Limpieza", "sky"),
}

RESERVATION_STATUS_LABELS: Dict[str, str] = {
    ReservationStatus.CONFIRMED.value: "Confirmada",
    ReservationStatus.CANCELLED.value: "Cancelada",
    ReservationStatus.CHECKED_IN.value: "Check-in realizado",
    ReservationStatus.CHECKED_OUT.value: "Check-out realizado",
}


def get_status_config(status: str) -> StatusConfig:
    """房间状态 -> 显示配置，未知状态原样显示"""
    return ROOM_STATUS_MAP.get((status or "").lower(), StatusConfig(status, "gray"))


def get_reservation_status_label(status: str) -> str:
    return RESERVATION_STATUS_LABELS.get(status, status)
