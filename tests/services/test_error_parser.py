"""
服务端错误解析测试
"""
import pytest

from illary.services.api_client import ApiError
from illary.services.error_parser import (
    UNKNOWN_ERROR, UNKNOWN_SERVER_ERROR, ParsedError, field_message, parse_server_error
)


class TestGeneralMessages:
    """字符串 detail -> 表单级提示"""

    def test_known_phrase_is_localized(self):
        parsed = parse_server_error({"detail": "Credenciales inválidas"})
        assert parsed.general_error == "Correo electrónico o contraseña incorrectos"
        assert parsed.field_errors == {}

    def test_known_phrase_case_insensitive(self):
        parsed = parse_server_error({"detail": "ACCOUNT BLOCKED by admin"})
        assert parsed.general_error == "Tu cuenta ha sido bloqueada. Contacta soporte"

    def test_unknown_phrase_passes_through(self):
        parsed = parse_server_error({"detail": "La habitación ya está reservada"})
        assert parsed.general_error == "La habitación ya está reservada"

    def test_api_error_detail(self):
        error = ApiError(400, "User not found", {"detail": "User not found"})
        assert parse_server_error(error).general_error == "No existe una cuenta con este correo electrónico"


class TestFieldErrors:
    """字段错误列表 -> 字段级提示"""

    def test_string_too_short_password(self):
        parsed = parse_server_error({"detail": [
            {"loc": ["body", "password"], "type": "string_too_short", "msg": "too short",
             "ctx": {"min_length": 6}},
        ]})
        assert parsed.general_error is None
        assert parsed.field_errors == {"password": "La contraseña debe tener al menos 6 caracteres"}

    def test_email_is_mapped_to_login(self):
        parsed = parse_server_error({"detail": [
            {"loc": ["body", "email"], "type": "value_error", "msg": "value is not a valid email address"},
        ]})
        assert parsed.field_errors == {"login": "Ingresa un correo electrónico válido"}

    def test_reservation_dates_are_mapped_to_form_fields(self):
        parsed = parse_server_error({"detail": [
            {"loc": ["body", "check_in_date"], "type": "missing", "msg": "Field required"},
            {"loc": ["body", "check_out_date"], "type": "missing", "msg": "Field required"},
        ]})
        assert parsed.field_errors == {
            "checkInDate": "Este campo es requerido",
            "checkOutDate": "Este campo es requerido",
        }

    def test_record_without_loc_goes_to_general_key(self):
        parsed = parse_server_error({"detail": [{"type": "missing", "msg": "x"}]})
        assert parsed.field_errors == {"general": "Este campo es requerido"}

    def test_empty_list(self):
        parsed = parse_server_error({"detail": []})
        assert parsed.general_error == UNKNOWN_SERVER_ERROR

    def test_api_error_with_empty_list(self):
        parsed = parse_server_error(ApiError(422, "HTTP 422", {"detail": []}))
        assert parsed.general_error == UNKNOWN_SERVER_ERROR
        assert parsed.field_errors == {}

    def test_list_without_dict_records(self):
        parsed = parse_server_error({"detail": ["oops", 3]})
        assert parsed.general_error == UNKNOWN_SERVER_ERROR

    @pytest.mark.parametrize("error_type,msg,expected", [
        ("string_too_long", "", "Este campo no puede tener más de 100 caracteres"),
        ("value_error", "bad value", "El valor ingresado no es válido"),
        ("type_error", "email expected", "Ingresa un correo electrónico válido"),
        ("type_error", "int expected", "El formato del campo no es válido"),
    ])
    def test_message_by_type(self, error_type, msg, expected):
        assert field_message("first_name", error_type, msg, None) == expected

    def test_unknown_type_for_password(self):
        assert field_message("password", "weird", "x", None) == "La contraseña no cumple con los requisitos"

    def test_unknown_type_falls_back_to_msg(self):
        assert field_message("telephone", "weird", "El teléfono es inválido", None) == "El teléfono es inválido"


class TestFallbacks:
    """任意输入都不抛异常"""

    def test_plain_exception(self):
        assert parse_server_error(RuntimeError("boom")).general_error == "boom"

    def test_exception_with_embedded_json(self):
        error = RuntimeError('HTTP 400: {"detail": "Invalid credentials"}')
        assert parse_server_error(error).general_error == "Correo electrónico o contraseña incorrectos"

    def test_json_string(self):
        parsed = parse_server_error('{"detail": [{"loc": ["body", "username"], "type": "missing", "msg": "x"}]}')
        assert parsed.field_errors == {"username": "Este campo es requerido"}

    def test_plain_string(self):
        assert parse_server_error("Algo salió mal").general_error == "Algo salió mal"

    @pytest.mark.parametrize("value", [None, 42, {}, {"detail": None}, {"detail": 12}])
    def test_unusable_values(self, value):
        parsed = parse_server_error(value)
        assert parsed.general_error in (UNKNOWN_ERROR, UNKNOWN_SERVER_ERROR)

    def test_to_dict(self):
        parsed = ParsedError(field_errors={"login": "x"})
        assert parsed.to_dict() == {"fieldErrors": {"login": "x"}}
