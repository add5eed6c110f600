"""
应用配置
从环境变量读取配置，API 基础地址只在启动时读取一次
"""
import os
from typing import Optional
from pydantic import ConfigDict, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用设置"""

    # 应用基础配置
    APP_NAME: str = "Illary Portal"
    DEBUG: bool = False

    # 远端酒店 API
    API_BASE_URL: str = "http://127.0.0.1:8000/api/v1"
    REQUEST_TIMEOUT: float = 10.0

    # 会话令牌（客户端持久化的固定键）
    SESSION_COOKIE_NAME: str = "access_token"
    SESSION_COOKIE_SECURE: bool = False
    SESSION_FILE: str = os.path.join(os.path.expanduser("~"), ".illary", "session.json")

    # 授权
    ADMIN_ROLE_NAME: str = "Administradores"

    # 显示
    CURRENCY_SYMBOL: str = "S/"

    # 可选：登录页与首页地址（重定向目标）
    LOGIN_PATH: str = "/login"
    HOME_PATH: str = "/"
    FRONTEND_ORIGIN: Optional[str] = None

    model_config = ConfigDict(env_file=".env", case_sensitive=True)

    @field_validator("API_BASE_URL")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


# 全局设置实例
settings = Settings()
