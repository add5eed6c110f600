"""
服务端错误解析
把 API 的错误信封 {detail: str | [{loc, type, msg, ctx}]} 转成
表单级（general_error）与字段级（field_errors）的用户提示

parse_server_error 永不抛异常。
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import json
import logging
import re

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Error desconocido"
UNKNOWN_SERVER_ERROR = "Error desconocido del servidor"
INVALID_EMAIL = "Ingresa un correo electrónico válido"

# 后端短语 -> 友好提示（小写包含匹配，按顺序取第一个）
GENERAL_MESSAGES = [
    (("credenciales inválidas", "invalid credentials"),
     "Correo electrónico o contraseña incorrectos"),
    (("usuario no encontrado", "user not found"),
     "No existe una cuenta con este correo electrónico"),
    (("cuenta bloqueada", "account blocked"),
     "Tu cuenta ha sido bloqueada. Contacta soporte"),
    (("email no verificado", "email not verified"),
     "Debes verificar tu correo electrónico antes de iniciar sesión"),
]

# 后端字段名 -> 表单字段名
FIELD_MAPPING: Dict[str, str] = {
    "login": "login",
    "email": "login",
    "password": "password",
    "first_name": "first_name",
    "last_name": "last_name",
    "username": "username",
    "telephone": "telephone",
    "id_document_number": "id_document_number",
    "check_in_date": "checkInDate",
    "check_out_date": "checkOutDate",
}

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)
_MISSING = object()


@dataclass
class ParsedError:
    """解析结果"""
    general_error: Optional[str] = None
    field_errors: Dict[str, str] = field(default_factory=dict)

    @property
    def has_field_errors(self) -> bool:
        return bool(self.field_errors)

    def to_dict(self) -> Dict[str, Any]:
        """camelCase 输出，省略空值"""
        data: Dict[str, Any] = {}
        if self.general_error is not None:
            data["generalError"] = self.general_error
        if self.field_errors:
            data["fieldErrors"] = dict(self.field_errors)
        return data


def _get_detail(error: Any) -> Any:
    if isinstance(error, dict):
        return error.get("detail", _MISSING)
    return getattr(error, "detail", _MISSING)


def friendly_general_message(message: str) -> str:
    """已知后端短语替换为本地化提示，未命中返回原文"""
    lowered = message.lower()
    for phrases, friendly in GENERAL_MESSAGES:
        if any(p in lowered for p in phrases):
            return friendly
    return message


def field_message(field_name: str, error_type: str, msg: str, ctx: Optional[Dict[str, Any]]) -> str:
    """按错误类型生成单个字段的提示"""
    ctx = ctx or {}

    if error_type == "string_too_short":
        min_length = ctx.get("min_length") or 8
        if field_name == "password":
            return f"La contraseña debe tener al menos {min_length} caracteres"
        return f"Este campo debe tener al menos {min_length} caracteres"

    if error_type == "string_too_long":
        max_length = ctx.get("max_length") or 100
        return f"Este campo no puede tener más de {max_length} caracteres"

    if error_type == "value_error":
        return INVALID_EMAIL if "email" in msg else "El valor ingresado no es válido"

    if error_type == "missing":
        return "Este campo es requerido"

    if error_type == "type_error":
        return INVALID_EMAIL if "email" in msg else "El formato del campo no es válido"

    # 其他类型按字段给出提示
    if field_name in ("login", "email"):
        if "email" in msg or "format" in msg:
            return INVALID_EMAIL
        return "El correo electrónico no es válido"
    if field_name == "password":
        return "La contraseña no cumple con los requisitos"
    return msg


def _parse_field_errors(records: List[Any]) -> ParsedError:
    field_errors: Dict[str, str] = {}
    for record in records:
        if not isinstance(record, dict):
            continue
        loc = record.get("loc") or []
        field_name = str(loc[-1]) if loc else "general"
        message = field_message(
            field_name,
            str(record.get("type") or ""),
            str(record.get("msg") or ""),
            record.get("ctx") if isinstance(record.get("ctx"), dict) else None,
        )
        field_errors[FIELD_MAPPING.get(field_name, field_name)] = message

    if not field_errors:
        return ParsedError(general_error=UNKNOWN_SERVER_ERROR)
    return ParsedError(field_errors=field_errors)


def parse_error_detail(detail: Any) -> ParsedError:
    """解析错误信封中的 detail"""
    if isinstance(detail, str):
        return ParsedError(general_error=friendly_general_message(detail))
    if isinstance(detail, list):
        return _parse_field_errors(detail)
    return ParsedError(general_error=UNKNOWN_SERVER_ERROR)


def _parse_embedded_json(text: str) -> Optional[ParsedError]:
    """消息文本中嵌有 JSON 信封时优先解析"""
    match = _JSON_OBJECT.search(text)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except ValueError:
        return None
    if isinstance(data, dict) and data.get("detail"):
        return parse_error_detail(data["detail"])
    return None


def parse_server_error(error: Any) -> ParsedError:
    """
    解析任意错误值

    Args:
        error: ApiError / 错误信封 dict / 普通异常 / 字符串 / None

    Returns:
        ParsedError，字段错误存在时不设置 general_error
    """
    try:
        detail = _get_detail(error)
        if detail is not _MISSING and detail is not None and detail != "":
            return parse_error_detail(detail)

        if isinstance(error, BaseException):
            message = getattr(error, "message", None) or str(error)
            embedded = _parse_embedded_json(message) if message else None
            if embedded is not None:
                return embedded
            return ParsedError(general_error=message or UNKNOWN_ERROR)

        if isinstance(error, str):
            try:
                data = json.loads(error)
            except ValueError:
                return ParsedError(general_error=error or UNKNOWN_ERROR)
            if isinstance(data, dict) and data.get("detail"):
                return parse_error_detail(data["detail"])
            return ParsedError(general_error=error or UNKNOWN_ERROR)

        return ParsedError(general_error=UNKNOWN_ERROR)
    except Exception as e:
        logger.error(f"Error parsing server error: {e}")
        fallback = getattr(error, "message", None)
        return ParsedError(general_error=fallback if isinstance(fallback, str) and fallback else UNKNOWN_ERROR)
