import orjson
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TaskRequestType(str, Enum):
    DEBUG = "DEBUG"


class TaskStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


class TaskRequest(BaseModel):
    """A unit of deferred work as it travels through the queue."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    task_id: Optional[str] = Field(default=None, alias="taskId")
    payload: Optional[str] = None
    type: TaskRequestType
    callback_url: Optional[str] = Field(default=None, alias="callbackUrl")

    @model_validator(mode="before")
    @classmethod
    def _match_names_case_insensitively(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        known = {}
        for name, field in cls.model_fields.items():
            known[name.lower()] = name
            if field.alias:
                known[field.alias.lower()] = field.alias
        return {known.get(str(k).lower(), k): v for k, v in data.items()}

    @field_validator("type", mode="before")
    @classmethod
    def _upper_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v


def result_partition(task_type: TaskRequestType) -> str:
    return f"Results-{TaskRequestType(task_type).value}"


class CompletedResponse(BaseModel):
    task_id: str = Field(serialization_alias="taskId")
    result: Any


class AcceptedResponse(BaseModel):
    message: str = "Task is processing"
    task_id: str = Field(serialization_alias="taskId")
    status_url: str = Field(serialization_alias="statusUrl")


class StatusResponse(BaseModel):
    task_id: str = Field(serialization_alias="taskId")
    type: TaskRequestType
    status: TaskStatus


class CallbackPayload(BaseModel):
    task_id: str = Field(serialization_alias="taskId")
    result: Any


class CacheEntryResponse(BaseModel):
    partition_key: str = Field(serialization_alias="partitionKey")
    row_key: str = Field(serialization_alias="rowKey")
    timestamp: str
    json_value: str = Field(serialization_alias="json")


def encode_task(request: TaskRequest) -> str:
    return orjson.dumps(request.model_dump(mode="json", by_alias=True)).decode()


def decode_task(body: str) -> TaskRequest:
    """Raises ValueError (orjson or pydantic) when the body is not a task."""
    return TaskRequest.model_validate(orjson.loads(body))
