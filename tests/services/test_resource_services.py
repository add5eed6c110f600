"""
资源服务测试：路径、列表归一化、模型解析
"""
from decimal import Decimal

from illary.models.schemas import EstablishmentPayload, ReservationPayload, RoomPayload
from illary.services.establishment_service import EstablishmentService
from illary.services.reservation_service import ReservationService
from illary.services.resource_service import payload_to_json
from illary.services.room_service import RoomService, RoomTypeService, is_bookable
from illary.services.user_service import UserService


class TestRoomService:
    def test_list_parses_camel_case(self, api):
        rooms = RoomService(api).list()
        assert [r.room_number for r in rooms] == ["101", "102", "201"]
        assert rooms[1].price_per_night == Decimal("180.5")

    def test_list_views_labels(self, api):
        views = RoomService(api).list_views()
        assert [(v.room_number, v.status_label, v.bookable) for v in views] == [
            ("101", "Disponible", True),
            ("102", "Mantenimiento", False),
            ("201", "Ocupada", False),
        ]

    def test_list_views_filter(self, api):
        views = RoomService(api).list_views("AVAILABLE")
        assert [v.id for v in views] == [1]

    def test_wrapped_list_payload(self, fake_api, api):
        fake_api.fail("GET", "/rooms", 200, {"data": [fake_api.rooms[1]]})
        assert [r.id for r in RoomService(api).list()] == [1]

    def test_is_bookable(self, api):
        room = RoomService(api).get(1)
        assert is_bookable(room) is True
        room.status = "Cleaning"
        assert is_bookable(room) is False

    def test_create_sends_camel_case(self, fake_api, admin_api):
        payload = RoomPayload(room_number="301", floor=3, price_per_night=Decimal("220.00"),
                              establishment_id=1, room_type_id=2)
        room = RoomService(admin_api).create(payload)
        assert room.id == 4
        assert fake_api.rooms[4]["roomNumber"] == "301"
        assert fake_api.rooms[4]["pricePerNight"] == 220.0


class TestOtherServices:
    def test_establishments_list_params(self, fake_api, admin_api):
        items = EstablishmentService(admin_api).list()
        assert items[0].name == "Illary Cusco"
        request = fake_api.requests[-1]
        assert request.url.params["skip"] == "0"
        assert request.url.params["limit"] == "100"

    def test_room_types_trailing_slash(self, fake_api, admin_api):
        RoomTypeService(admin_api).list()
        assert fake_api.requests[-1].url.path == "/api/v1/room-types/"

    def test_users(self, admin_api):
        users = UserService(admin_api).list()
        assert {u.full_name for u in users} == {"Ana Torres", "Luis Quispe"}

    def test_reservation_dates_are_calendar_days(self, admin_api):
        reservation = ReservationService(admin_api).get(1)
        assert reservation.check_in_date.isoformat() == "2024-05-01"
        assert reservation.kind == "reservation"

    def test_list_all_embeds_guest(self, admin_api):
        items = ReservationService(admin_api).list_all()
        assert items[0].user.login == "cliente@correo.com"


class TestPayloadToJson:
    def test_model(self):
        data = payload_to_json(EstablishmentPayload(name="Illary Lima", city="Lima"))
        assert data == {"name": "Illary Lima", "city": "Lima"}

    def test_reservation_payload_dates(self):
        data = payload_to_json(ReservationPayload(room_id=1, check_in_date="2024-05-01T10:00:00",
                                                  check_out_date="2024-05-02", total_amount=Decimal("100.00")))
        assert data["checkInDate"] == "2024-05-01"
        assert data["roomId"] == 1
        assert "userId" not in data

    def test_plain_dict(self):
        assert payload_to_json({"status": "cancelled"}) == {"status": "cancelled"}
