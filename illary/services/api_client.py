"""
远端酒店 API 客户端
所有持久化都经由这里发往外部 REST API，附带 Bearer 令牌
"""
from typing import Any, Dict, List, Optional
import logging

import httpx

from illary.config import settings

logger = logging.getLogger(__name__)

SERVICE_UNAVAILABLE_MESSAGE = "El servicio no está disponible en este momento. Inténtalo nuevamente."


class ApiError(Exception):
    """
    API 返回非 2xx

    Attributes:
        status_code: HTTP 状态码
        message: 可读消息（detail 为字符串时即 detail）
        payload: 解析后的 JSON 体（可能为 None）
        detail: 错误信封中的 detail（字符串或字段错误列表）
    """

    def __init__(self, status_code: int, message: str, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload
        self.detail = payload.get("detail") if isinstance(payload, dict) else None


class AuthenticationError(ApiError):
    """令牌缺失、过期或无效（401）"""


class ServiceUnavailableError(Exception):
    """网络层失败：主机不可达、超时等"""

    def __init__(self, message: str = SERVICE_UNAVAILABLE_MESSAGE):
        super().__init__(message)
        self.message = message


def create_http_client(base_url: Optional[str] = None,
                       timeout: Optional[float] = None,
                       transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    """创建绑定到 API 基础地址的 httpx 客户端"""
    return httpx.Client(
        base_url=(base_url or settings.API_BASE_URL).rstrip("/"),
        timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT,
        transport=transport,
    )


def _error_message(status_code: int, payload: Any) -> str:
    if isinstance(payload, dict):
        detail = payload.get("detail")
        if isinstance(detail, str) and detail:
            return detail
        message = payload.get("message")
        if isinstance(message, str) and message:
            return message
    return f"HTTP {status_code}"


def as_list(payload: Any, source: str = "api") -> List[Any]:
    """列表接口返回值归一化：[...]、{data: [...]}、{items: [...]}"""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("data", "items"):
            if isinstance(payload.get(key), list):
                return payload[key]
    logger.warning(f"[{source}] response is not a list: {payload!r}")
    return []


class ApiClient:
    """
    远端 API 的薄封装

    Example:
        >>> api = ApiClient(create_http_client(), token="abc")
        >>> rooms = api.get("/rooms")
    """

    def __init__(self, http: httpx.Client, token: Optional[str] = None):
        self._http = http
        self.token = token

    def with_token(self, token: Optional[str]) -> "ApiClient":
        """同一连接池，换一个令牌"""
        return ApiClient(self._http, token=token)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def request(self, method: str, path: str, json: Any = None,
                params: Optional[Dict[str, Any]] = None) -> Any:
        """
        发送请求并解析响应

        Returns:
            JSON 体；204 或非 JSON 响应返回 None

        Raises:
            AuthenticationError: 401
            ApiError: 其他非 2xx
            ServiceUnavailableError: 网络层失败
        """
        if method != "GET" and json is not None:
            logger.debug(f"[api] {method} {path} body: {json}")

        try:
            response = self._http.request(method, path, json=json, params=params, headers=self._headers())
        except httpx.TransportError as e:
            logger.error(f"[api] {method} {path} failed: {e}")
            raise ServiceUnavailableError() from e

        return self._handle_response(method, path, response)

    def _handle_response(self, method: str, path: str, response: httpx.Response) -> Any:
        payload = None
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type and response.content:
            try:
                payload = response.json()
            except ValueError:
                payload = None

        if response.status_code == 204:
            return None

        if response.is_success:
            return payload

        message = _error_message(response.status_code, payload)
        logger.warning(f"[api] {method} {path} -> {response.status_code}: {message}")
        if response.status_code == 401:
            raise AuthenticationError(response.status_code, message, payload)
        raise ApiError(response.status_code, message, payload)

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None) -> Any:
        return self.request("POST", path, json=json)

    def put(self, path: str, json: Any = None) -> Any:
        return self.request("PUT", path, json=json)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)
