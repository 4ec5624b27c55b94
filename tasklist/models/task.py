from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


def utc_now() -> datetime:
    """当前 UTC 时间（截断到毫秒，与持久化精度一致）"""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def format_timestamp(value: datetime) -> str:
    """格式化为 2024-05-01T12:00:00.000Z 形式"""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


class Task(BaseModel):
    """任务模型"""
    # 保留未知字段，写回时不丢失
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: int = Field(..., ge=1, description="任务ID（单调递增）")
    title: str = Field(..., min_length=1, description="任务标题")
    description: str = Field(default="", description="任务描述")
    completed: bool = Field(default=False, description="是否已完成")
    created_at: datetime = Field(..., alias="createdAt", description="创建时间")
    updated_at: datetime = Field(..., alias="updatedAt", description="最后更新时间")

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        # 旧数据可能没有时区信息，按 UTC 处理
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @field_serializer("created_at", "updated_at")
    def serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)

    def touch(self) -> None:
        """刷新 updatedAt，保证严格递增"""
        now = utc_now()
        if now <= self.updated_at:
            now = self.updated_at + timedelta(milliseconds=1)
        self.updated_at = now


class TaskCreateRequest(BaseModel):
    """创建任务请求"""
    title: Optional[str] = Field(None, description="任务标题（必填，去除首尾空白后不能为空）")
    description: Optional[str] = Field(None, description="任务描述（可选）")


class TaskUpdateRequest(BaseModel):
    """更新任务请求（未提供的字段保持不变）"""
    # 不限定类型，由服务层统一转换（标题、描述转字符串，完成状态按真值转布尔）
    title: Any = Field(None, description="新标题（不能为空）")
    description: Any = Field(None, description="新描述")
    completed: Any = Field(None, description="完成状态")

    def supplied_fields(self) -> Dict[str, Any]:
        """返回调用方实际提供的字段（null 视为未提供）"""
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }


class TaskListResponse(BaseModel):
    """任务列表响应"""
    success: bool = Field(default=True)
    data: List[Task] = Field(default_factory=list, description="完整任务列表")


class ErrorResponse(BaseModel):
    """错误响应"""
    success: bool = Field(default=False)
    message: str = Field(..., description="错误信息")
