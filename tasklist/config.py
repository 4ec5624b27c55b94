"""服务配置（从环境变量加载）"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator


_TRUE_VALUES = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    # 服务监听
    host: str = "127.0.0.1"
    port: int = Field(3000, ge=1, le=65535)

    # 持久化
    db_file: Path = Field(default_factory=lambda: Path.cwd() / "tasks-db.json")
    strict_writes: bool = Field(
        True, description="写入失败时是否让请求失败（关闭则只记录日志）"
    )

    # 请求限制
    max_body_bytes: int = Field(1_000_000, ge=1)

    # 日志
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {v}")
        return level


def load_settings() -> Settings:
    env = os.environ
    values = {}

    if env.get("TASKLIST_HOST"):
        values["host"] = env["TASKLIST_HOST"]
    # PORT 兼容原部署方式，TASKLIST_PORT 优先
    port = env.get("TASKLIST_PORT") or env.get("PORT")
    if port:
        values["port"] = port
    if env.get("TASKLIST_DB_FILE"):
        values["db_file"] = env["TASKLIST_DB_FILE"]
    if env.get("TASKLIST_STRICT_WRITES"):
        values["strict_writes"] = env["TASKLIST_STRICT_WRITES"].strip().lower() in _TRUE_VALUES
    if env.get("TASKLIST_MAX_BODY_BYTES"):
        values["max_body_bytes"] = env["TASKLIST_MAX_BODY_BYTES"]
    if env.get("TASKLIST_LOG_LEVEL"):
        values["log_level"] = env["TASKLIST_LOG_LEVEL"]

    try:
        return Settings(**values)
    except ValidationError as e:
        raise RuntimeError(f"Invalid settings: {e}") from e


settings = load_settings()
