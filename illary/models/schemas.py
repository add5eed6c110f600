"""
Pydantic 模式定义
远端 API 的请求/响应结构（线上字段使用 camelCase）
"""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List, Union, Any, Dict, Literal, Annotated
from pydantic import BaseModel, Field, field_validator, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# 金额在内部保持 Decimal，JSON 中按数字发送
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ApiModel(BaseModel):
    """camelCase 线上字段的基类"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_api(self) -> Dict[str, Any]:
        """序列化为发送给 API 的 JSON 体"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SnakeModel(BaseModel):
    """用户相关结构在线上使用 snake_case"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _calendar_day(v: Any) -> Any:
    """'2024-05-01T00:00:00' -> '2024-05-01'，只保留日历日"""
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, str) and "T" in v:
        return v.split("T")[0]
    return v


# ============== 房型 Schemas ==============

class RoomTypePayload(ApiModel):
    name: str = Field(..., max_length=100)
    description: str = ""
    base_price: Money = Field(..., ge=0)
    capacity: int = Field(default=2, ge=1)
    amenities: List[str] = Field(default_factory=list)
    status: str = "A"
    created_by: Optional[int] = None


class RoomTypeUpdate(ApiModel):
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    base_price: Optional[Money] = Field(None, ge=0)
    capacity: Optional[int] = Field(None, ge=1)
    amenities: Optional[List[str]] = None
    status: Optional[str] = None


class RoomType(RoomTypePayload):
    id: int
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============== 房间 Schemas ==============

class RoomPayload(ApiModel):
    room_number: str = Field(..., max_length=10)
    floor: int
    max_occupancy: int = Field(default=2, ge=1)
    price_per_night: Money = Field(..., ge=0)
    description: str = ""
    features: List[str] = Field(default_factory=list)
    status: str = "available"
    establishment_id: int
    room_type_id: int
    created_by: Optional[int] = None


class Room(RoomPayload):
    id: int


class RoomView(Room):
    """房间浏览视图：附带状态标签"""
    status_label: str
    bookable: bool


# ============== 酒店 Schemas ==============

class EstablishmentPayload(ApiModel):
    name: str = Field(..., max_length=150)
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    stars: Optional[int] = Field(None, ge=0, le=5)
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    ai_settings: Optional[Dict[str, Any]] = None
    status: Optional[str] = None


class Establishment(EstablishmentPayload):
    id: int
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============== 用户 Schemas ==============

class UserInfo(SnakeModel):
    """管理端预订列表中嵌入的客人信息"""
    id: int
    first_name: str = ""
    last_name: str = ""
    login: str = ""
    telephone: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


UserOption = UserInfo


class CurrentUser(SnakeModel):
    """会话声明：当前登录用户及其角色"""
    id: Optional[int] = None
    login: str = ""
    display_name: str = Field(default="Usuario", alias="displayName")
    first_name: str = ""
    last_name: str = ""
    admin: bool = False
    employee: bool = False
    status: Optional[str] = None
    roles: List[str] = Field(default_factory=list)


class LoginRequest(BaseModel):
    login: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResult(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: CurrentUser


class UserRegistration(SnakeModel):
    first_name: str
    last_name: str
    id_document_type: str = "DNI"
    id_document_number: str
    login: str
    password: str
    telephone: str
    position: Optional[str] = "Cliente"
    username: str
    display_name: Optional[str] = Field(default=None, alias="displayName")

    def to_api(self) -> Dict[str, Any]:
        """API 期望密码字段名为 pass"""
        data = super().to_api()
        data["pass"] = data.pop("password")
        if not data.get("displayName"):
            data["displayName"] = f"{self.first_name} {self.last_name}".strip()
        return data


# ============== 预订 Schemas ==============

class ReservationBase(ApiModel):
    room_id: int
    check_in_date: date
    check_out_date: date
    adults: int = Field(default=1, ge=1)
    children: int = Field(default=0, ge=0)
    total_amount: Money = Field(default=Decimal("0"), ge=0)
    special_requests: Optional[str] = None
    ai_notes: Optional[str] = None

    @field_validator("check_in_date", "check_out_date", mode="before")
    @classmethod
    def _only_calendar_day(cls, v):
        return _calendar_day(v)


class ReservationPayload(ReservationBase):
    # 管理员代客下单时指定；普通客人由 API 自动归属
    user_id: Optional[int] = None


class ReservationUpdatePayload(ApiModel):
    room_id: Optional[int] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    adults: Optional[int] = Field(None, ge=1)
    children: Optional[int] = Field(None, ge=0)
    total_amount: Optional[Money] = Field(None, ge=0)
    special_requests: Optional[str] = None
    ai_notes: Optional[str] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None
    cancellation_reason: Optional[str] = None

    @field_validator("check_in_date", "check_out_date", mode="before")
    @classmethod
    def _only_calendar_day(cls, v):
        return _calendar_day(v)


class Reservation(ReservationBase):
    """客人视角的预订（/reservations/my）"""
    kind: Literal["reservation"] = "reservation"
    id: int
    user_id: int
    status: str = "confirmed"
    payment_status: str = "pending"
    cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"kind"})


class ReservationWithUser(Reservation):
    """管理端预订（/reservations/all），带嵌入的客人信息"""
    kind: Literal["reservation_with_user"] = "reservation_with_user"
    user: UserInfo

    @classmethod
    def attach(cls, reservation: Reservation, user: UserInfo) -> "ReservationWithUser":
        """把客人信息挂回到 API 返回的普通预订上"""
        data = reservation.model_dump(exclude={"kind"})
        return cls(**data, user=user)


ReservationItem = Annotated[Union[Reservation, ReservationWithUser], Field(discriminator="kind")]


# ============== 前端表单 / 视图 Schemas ==============

class BookingForm(ApiModel):
    """客人预订表单，日期保持原始字符串以便逐字段校验"""
    check_in_date: Optional[str] = None
    check_out_date: Optional[str] = None
    adults: int = 1
    children: int = 0
    special_requests: str = ""


class BookingRequest(BookingForm):
    room_id: int


class PriceQuote(ApiModel):
    check_in_date: date
    check_out_date: date
    nights: int
    price_per_night: Money
    total_amount: Money
    currency: str = "S/"

    @property
    def display_total(self) -> str:
        return f"{self.currency} {self.total_amount:.2f}"


class NotificationView(ApiModel):
    type: Literal["success", "error"]
    message: str


class ErrorResponse(ApiModel):
    general_error: Optional[str] = None
    field_errors: Optional[Dict[str, str]] = None
    redirect: Optional[str] = None
    retry: bool = False
