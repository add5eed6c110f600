"""
用户服务
注册（公开）与用户列表（管理端下拉选项）
"""
from typing import Any, Dict, List
import re

from illary.models.schemas import UserInfo, UserRegistration
from illary.services.api_client import ApiClient, as_list

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_DNI = re.compile(r"^\d{8}$")
_PHONE = re.compile(r"^\d{9}$")
_USERNAME = re.compile(r"^[a-zA-Z0-9_]+$")


def validate_registration(form: UserRegistration) -> Dict[str, str]:
    """
    注册表单的客户端校验

    Returns:
        字段 -> 提示；空字典表示通过
    """
    errors: Dict[str, str] = {}

    if not form.first_name.strip():
        errors["first_name"] = "El nombre es requerido"
    elif len(form.first_name.strip()) < 2:
        errors["first_name"] = "El nombre debe tener al menos 2 caracteres"

    if not form.last_name.strip():
        errors["last_name"] = "Los apellidos son requeridos"
    elif len(form.last_name.strip()) < 2:
        errors["last_name"] = "Los apellidos deben tener al menos 2 caracteres"

    number = form.id_document_number
    if not number.strip():
        errors["id_document_number"] = "El número de documento es requerido"
    elif form.id_document_type == "DNI" and not _DNI.match(number):
        errors["id_document_number"] = "El DNI debe tener 8 dígitos"
    elif form.id_document_type == "CE" and len(number) < 9:
        errors["id_document_number"] = "El CE debe tener al menos 9 caracteres"

    if not form.login.strip():
        errors["login"] = "El correo electrónico es requerido"
    elif not _EMAIL.match(form.login):
        errors["login"] = "Ingresa un correo electrónico válido"

    password = form.password
    if not password:
        errors["password"] = "La contraseña es requerida"
    elif len(password) < 6:
        errors["password"] = "La contraseña debe tener al menos 6 caracteres"
    elif not (re.search(r"[a-z]", password) and re.search(r"[A-Z]", password)):
        errors["password"] = "La contraseña debe tener al menos una mayúscula y una minúscula"

    if not form.telephone.strip():
        errors["telephone"] = "El teléfono es requerido"
    elif not _PHONE.match(re.sub(r"\s", "", form.telephone)):
        errors["telephone"] = "El teléfono debe tener 9 dígitos"

    if not form.username.strip():
        errors["username"] = "El nombre de usuario es requerido"
    elif len(form.username) < 3:
        errors["username"] = "El nombre de usuario debe tener al menos 3 caracteres"
    elif not _USERNAME.match(form.username):
        errors["username"] = "Solo se permiten letras, números y guiones bajos"

    return errors


class UserService:
    """用户服务"""

    def __init__(self, api: ApiClient):
        self.api = api

    def list(self) -> List[UserInfo]:
        """用户列表（需要管理员令牌）"""
        payload = self.api.get("/users/")
        return [UserInfo.model_validate(item) for item in as_list(payload, "UserService")]

    def register(self, form: UserRegistration) -> Dict[str, Any]:
        """注册新用户，密码以 pass 字段发送"""
        return self.api.post("/users/register", json=form.to_api()) or {}
