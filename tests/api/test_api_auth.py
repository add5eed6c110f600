"""
认证 API 测试
覆盖 /auth 端点
"""
from fastapi.testclient import TestClient

from illary.config import settings


class TestAuthLogin:
    """登录接口测试"""

    def test_login_success_sets_cookie(self, client: TestClient):
        response = client.post("/auth/login", json={"login": "admin@illary.pe", "password": "Admin123"})

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["login"] == "admin@illary.pe"
        assert data["user"]["displayName"] == "Ana Torres"
        assert data["redirect"] == "/"
        assert "access_token" not in data
        assert client.cookies.get(settings.SESSION_COOKIE_NAME)

    def test_login_wrong_password(self, client: TestClient):
        response = client.post("/auth/login", json={"login": "admin@illary.pe", "password": "wrong"})

        assert response.status_code == 401
        assert response.json()["generalError"] == "Correo electrónico o contraseña incorrectos"

    def test_login_missing_fields(self, client: TestClient):
        response = client.post("/auth/login", json={"login": ""})
        assert response.status_code == 422

    def test_login_api_down(self, client: TestClient, fake_api):
        fake_api.offline = True
        response = client.post("/auth/login", json={"login": "admin@illary.pe", "password": "Admin123"})

        assert response.status_code == 503
        assert response.json()["retry"] is True


class TestAuthSession:
    """Cookie 会话"""

    def test_me_after_login(self, client: TestClient):
        client.post("/auth/login", json={"login": "cliente@correo.com", "password": "Cliente1"})
        response = client.get("/auth/me")

        assert response.status_code == 200
        assert response.json()["roles"] == ["Clientes"]

    def test_me_with_bearer_header(self, client: TestClient, admin_headers):
        response = client.get("/auth/me", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["admin"] is True

    def test_me_anonymous(self, client: TestClient):
        response = client.get("/auth/me")

        assert response.status_code == 401
        assert response.json()["redirect"] == "/login"

    def test_me_with_rejected_token(self, client: TestClient, token_factory):
        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token_factory('99')}"})
        assert response.status_code == 401

    def test_me_with_expired_token_skips_api(self, client: TestClient, fake_api, token_factory):
        expired = token_factory("1", expires_in=-30)
        response = client.get("/auth/me", headers={"Authorization": f"Bearer {expired}"})

        assert response.status_code == 401
        assert fake_api.requests == []

    def test_logout_clears_cookie(self, client: TestClient, fake_api):
        client.post("/auth/login", json={"login": "cliente@correo.com", "password": "Cliente1"})
        response = client.post("/auth/logout")

        assert response.status_code == 200
        assert response.json()["warning"] is None
        assert fake_api.requests[-1].url.path.endswith("/users/logout")
        assert client.get("/auth/me").status_code == 401

    def test_logout_when_api_down(self, client: TestClient, fake_api, customer_headers):
        fake_api.offline = True
        response = client.post("/auth/logout", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["warning"]


class TestAuthRegister:
    """注册"""

    PAYLOAD = {
        "first_name": "María", "last_name": "Huamán", "id_document_type": "DNI",
        "id_document_number": "12345678", "login": "maria@correo.com", "password": "Secreta1",
        "telephone": "987654321", "username": "maria_h",
    }

    def test_register(self, client: TestClient, fake_api):
        response = client.post("/auth/register", json=self.PAYLOAD)

        assert response.status_code == 201
        assert response.json()["redirect"] == "/login"
        assert any(u["login"] == "maria@correo.com" for u in fake_api.users.values())

    def test_register_client_validation(self, client: TestClient, fake_api):
        response = client.post("/auth/register", json=dict(self.PAYLOAD, password="abc", telephone="1"))

        assert response.status_code == 422
        errors = response.json()["fieldErrors"]
        assert set(errors) == {"password", "telephone"}
        assert fake_api.requests == []

    def test_register_duplicate(self, client: TestClient):
        response = client.post("/auth/register", json=dict(self.PAYLOAD, login="cliente@correo.com"))

        assert response.status_code == 400
        assert response.json()["generalError"] == "El correo ya está registrado"


class TestHealth:
    def test_health(self, client: TestClient):
        assert client.get("/health").json() == {"status": "healthy"}
