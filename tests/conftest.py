"""
Pytest 配置和共享 fixtures

远端酒店 API 用内存中的 FakeHotelApi 代替，通过 httpx.MockTransport 接入
"""
import json
import re
import time
from typing import Any, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt

from illary.main import app
from illary.security.auth import get_http_client
from illary.services.api_client import ApiClient

API_BASE = "http://hotel.test/api/v1"
TOKEN_SECRET = "test-secret"


def make_token(subject: str, expires_in: int = 3600) -> str:
    """签发测试用 JWT（客户端只读取 exp，不校验签名）"""
    return jwt.encode({"sub": subject, "exp": int(time.time()) + expires_in}, TOKEN_SECRET, algorithm="HS256")


class FakeHotelApi:
    """
    内存版远端酒店 API

    Attributes:
        offline: 为 True 时所有请求抛出网络错误
        failures: (方法, 路径) -> (状态码, 响应体)，注入一次性错误
        requests: 收到的请求记录
    """

    def __init__(self):
        self.offline = False
        self.failures: Dict[tuple, tuple] = {}
        self.requests: List[httpx.Request] = []
        self.tokens: Dict[str, int] = {}
        self.users: Dict[int, Dict[str, Any]] = {
            1: {"id": 1, "login": "admin@illary.pe", "password": "Admin123",
                "first_name": "Ana", "last_name": "Torres", "displayName": "Ana Torres",
                "telephone": "987654321", "admin": True, "employee": True, "status": "A",
                "roles": ["Administradores"]},
            2: {"id": 2, "login": "cliente@correo.com", "password": "Cliente1",
                "first_name": "Luis", "last_name": "Quispe", "displayName": "Luis Quispe",
                "telephone": "912345678", "admin": False, "employee": False, "status": "A",
                "roles": ["Clientes"]},
        }
        self.rooms: Dict[int, Dict[str, Any]] = {
            1: {"id": 1, "roomNumber": "101", "floor": 1, "maxOccupancy": 2, "pricePerNight": 100,
                "description": "Habitación doble con vista al jardín", "features": ["WiFi", "TV"],
                "status": "available", "establishmentId": 1, "roomTypeId": 1},
            2: {"id": 2, "roomNumber": "102", "floor": 1, "maxOccupancy": 4, "pricePerNight": 180.5,
                "description": "Suite familiar", "features": ["WiFi", "Jacuzzi"],
                "status": "maintenance", "establishmentId": 1, "roomTypeId": 2},
            3: {"id": 3, "roomNumber": "201", "floor": 2, "maxOccupancy": 3, "pricePerNight": 150,
                "description": "Habitación triple", "features": [],
                "status": "occupied", "establishmentId": 1, "roomTypeId": 1},
        }
        self.room_types: Dict[int, Dict[str, Any]] = {
            1: {"id": 1, "name": "Doble", "description": "Dos camas", "basePrice": 100,
                "capacity": 2, "amenities": ["WiFi"], "status": "A"},
            2: {"id": 2, "name": "Suite", "description": "Suite familiar", "basePrice": 180,
                "capacity": 4, "amenities": ["WiFi", "Jacuzzi"], "status": "A"},
        }
        self.establishments: Dict[int, Dict[str, Any]] = {
            1: {"id": 1, "name": "Illary Cusco", "city": "Cusco", "country": "Perú", "stars": 4,
                "checkInTime": "14:00", "checkOutTime": "12:00", "status": "A"},
        }
        self.reservations: Dict[int, Dict[str, Any]] = {
            1: {"id": 1, "userId": 2, "roomId": 1, "checkInDate": "2024-05-01T00:00:00",
                "checkOutDate": "2024-05-03T00:00:00", "adults": 2, "children": 0,
                "totalAmount": 200, "specialRequests": None, "aiNotes": None,
                "status": "confirmed", "paymentStatus": "pending"},
        }
        self.admin_token = self.issue_token(1)
        self.customer_token = self.issue_token(2)

    # ============== 辅助 ==============

    def issue_token(self, user_id: int, expires_in: int = 3600) -> str:
        token = make_token(str(user_id), expires_in)
        self.tokens[token] = user_id
        return token

    def fail(self, method: str, path: str, status_code: int, body: Any = None) -> None:
        """下一次 method path 请求返回指定错误"""
        self.failures[(method, path)] = (status_code, body)

    @staticmethod
    def _public_user(user: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in user.items() if k not in ("password", "roles")}

    @staticmethod
    def _user_info(user: Dict[str, Any]) -> Dict[str, Any]:
        return {k: user[k] for k in ("id", "first_name", "last_name", "login", "telephone")}

    def _caller(self, request: httpx.Request) -> Optional[Dict[str, Any]]:
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return None
        user_id = self.tokens.get(header[len("Bearer "):])
        return self.users.get(user_id) if user_id else None

    @staticmethod
    def _json(status_code: int, body: Any) -> httpx.Response:
        return httpx.Response(status_code, json=body)

    def _unauthorized(self) -> httpx.Response:
        return self._json(401, {"detail": "No autenticado"})

    @staticmethod
    def _next_id(collection: Dict[int, Any]) -> int:
        return max(collection) + 1 if collection else 1

    # ============== 请求分发 ==============

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.offline:
            raise httpx.ConnectError("Connection refused", request=request)

        path = request.url.path[len("/api/v1"):]
        method = request.method
        failure = self.failures.pop((method, path), None)
        if failure is not None:
            status_code, body = failure
            return httpx.Response(status_code, json=body) if body is not None else httpx.Response(status_code)

        body = json.loads(request.content) if request.content else None
        caller = self._caller(request)

        if path == "/users/login" and method == "POST":
            return self._login(body)
        if path == "/users/register" and method == "POST":
            return self._register(body)
        if path == "/rooms" and method == "GET":
            return self._json(200, list(self.rooms.values()))

        if caller is None and not re.match(r"^/rooms/\d+$", path):
            return self._unauthorized()

        if path == "/users/me":
            return self._json(200, {"user": self._public_user(caller), "roles": caller["roles"]})
        if path == "/users/logout":
            return self._json(200, {"message": "Sesión cerrada"})
        if path == "/users/":
            return self._json(200, [self._user_info(u) for u in self.users.values()])

        if path == "/reservations/all":
            return self._json(200, [dict(r, user=self._user_info(self.users[r["userId"]]))
                                    for r in self.reservations.values()])
        if path == "/reservations/my":
            return self._json(200, [r for r in self.reservations.values() if r["userId"] == caller["id"]])
        if path == "/reservations/" and method == "POST":
            return self._create_reservation(caller, body)

        for prefix, collection in (("/rooms", self.rooms), ("/room-types", self.room_types),
                                   ("/establishments", self.establishments),
                                   ("/reservations", self.reservations)):
            match = re.match(rf"^{prefix}/?(\d+)?$", path)
            if match:
                item_id = int(match.group(1)) if match.group(1) else None
                return self._crud(method, collection, item_id, body, caller)

        return self._json(404, {"detail": "Not Found"})

    def _login(self, body: Dict[str, Any]) -> httpx.Response:
        for user in self.users.values():
            if user["login"] == body.get("login") and user["password"] == body.get("password"):
                return self._json(200, {
                    "access_token": self.issue_token(user["id"]),
                    "token_type": "bearer",
                    "user": self._public_user(user),
                    "roles": user["roles"],
                })
        return self._json(401, {"detail": "Credenciales inválidas"})

    def _register(self, body: Dict[str, Any]) -> httpx.Response:
        if any(u["login"] == body.get("login") for u in self.users.values()):
            return self._json(400, {"detail": "El correo ya está registrado"})
        user_id = self._next_id(self.users)
        user = dict(body, id=user_id, password=body.get("pass"), admin=False, employee=False,
                    status="A", roles=["Clientes"])
        user.pop("pass", None)
        self.users[user_id] = user
        return self._json(201, self._public_user(user))

    def _create_reservation(self, caller: Dict[str, Any], body: Dict[str, Any]) -> httpx.Response:
        if body["checkOutDate"] <= body["checkInDate"]:
            return self._json(422, {"detail": [{
                "loc": ["body", "check_out_date"], "type": "value_error",
                "msg": "Value error, check_out_date must be after check_in_date",
            }]})
        reservation_id = self._next_id(self.reservations)
        reservation = dict(
            body,
            id=reservation_id,
            userId=body.get("userId") or caller["id"],
            status="confirmed",
            paymentStatus="pending",
            aiNotes="Check-in anticipado sujeto a disponibilidad" if body.get("specialRequests") else None,
        )
        self.reservations[reservation_id] = reservation
        return self._json(201, reservation)

    def _crud(self, method: str, collection: Dict[int, Any], item_id: Optional[int],
              body: Any, caller: Optional[Dict[str, Any]]) -> httpx.Response:
        if item_id is None:
            if method == "GET":
                return self._json(200, list(collection.values()))
            if method == "POST":
                new_id = self._next_id(collection)
                collection[new_id] = dict(body, id=new_id)
                return self._json(201, collection[new_id])
            return self._json(405, {"detail": "Method Not Allowed"})

        if item_id not in collection:
            return self._json(404, {"detail": "Recurso no encontrado"})
        if method == "GET":
            return self._json(200, collection[item_id])
        if caller is None or not caller["admin"]:
            return self._json(403, {"detail": "No tiene permisos para realizar esta acción"})
        if method == "PUT":
            collection[item_id] = dict(collection[item_id], **body)
            return self._json(200, collection[item_id])
        if method == "DELETE":
            del collection[item_id]
            return httpx.Response(204)
        return self._json(405, {"detail": "Method Not Allowed"})


# ============== Fixtures ==============

@pytest.fixture
def fake_api():
    """内存版远端 API"""
    return FakeHotelApi()


@pytest.fixture
def http_client(fake_api):
    """指向内存 API 的 httpx 客户端"""
    with httpx.Client(base_url=API_BASE, transport=httpx.MockTransport(fake_api.handler)) as client:
        yield client


@pytest.fixture
def api(http_client):
    """匿名 API 客户端"""
    return ApiClient(http_client)


@pytest.fixture
def admin_api(http_client, fake_api):
    """管理员 API 客户端"""
    return ApiClient(http_client, token=fake_api.admin_token)


@pytest.fixture
def customer_api(http_client, fake_api):
    """客人 API 客户端"""
    return ApiClient(http_client, token=fake_api.customer_token)


@pytest.fixture
def client(http_client):
    """创建测试客户端"""
    app.dependency_overrides[get_http_client] = lambda: http_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============== 认证相关 Fixtures ==============

@pytest.fixture
def admin_token(fake_api):
    return fake_api.admin_token


@pytest.fixture
def customer_token(fake_api):
    return fake_api.customer_token


@pytest.fixture
def admin_headers(admin_token):
    """返回管理员认证的请求头"""
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def customer_headers(customer_token):
    """返回客人认证的请求头"""
    return {"Authorization": f"Bearer {customer_token}"}


@pytest.fixture
def token_factory():
    """签发任意有效期的测试令牌"""
    return make_token
