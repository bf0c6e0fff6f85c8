"""Inbound request variants, validated before dispatch."""

from __future__ import annotations

import json
from typing import Any, Dict, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from errors import MissingFieldError, UnexpectedError

ACTION_DEVICE_HEALTH = "get_device_health"
ACTION_OFFLINE_DATA = "get_offline_data"
ACTION_ENV_HISTORY = "get_env_history"


class _Request(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True, str_strip_whitespace=False)


class HealthQuery(_Request):
    action: Literal["get_device_health"] = ACTION_DEVICE_HEALTH
    deviceId: str = Field(..., min_length=1)


class OfflineQuery(_Request):
    action: Literal["get_offline_data"] = ACTION_OFFLINE_DATA
    deviceId: str = Field(..., min_length=1)


class EnvHistoryQuery(_Request):
    action: Literal["get_env_history"] = ACTION_ENV_HISTORY
    deviceId: str = Field(..., min_length=1)


class AnnotationSubmission(_Request):
    """Anything that is not a known query is an annotation submission."""

    action: Optional[Any] = None
    userName: str = Field(..., min_length=1)
    deviceId: str = Field(..., min_length=1)
    eventId: str = Field(..., min_length=1)
    context: Optional[str] = ""
    timestamp: Optional[str] = None

    @field_validator("context", mode="before")
    @classmethod
    def context_as_text(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return json.dumps(value)


Request = Union[HealthQuery, OfflineQuery, EnvHistoryQuery, AnnotationSubmission]

QUERY_MODELS: Dict[str, Type[_Request]] = {
    ACTION_DEVICE_HEALTH: HealthQuery,
    ACTION_OFFLINE_DATA: OfflineQuery,
    ACTION_ENV_HISTORY: EnvHistoryQuery,
}


def parse_request(payload: object) -> Request:
    """Return the request variant selected by ``payload["action"]``.

    Raises
    ------
    MissingFieldError
        When a field required by the selected variant is absent or empty.
    UnexpectedError
        When the body is not a JSON object.
    """

    if not isinstance(payload, dict):
        raise UnexpectedError("Request body must be a JSON object")

    action = payload.get("action")
    model: Type[_Request] = AnnotationSubmission
    if isinstance(action, str):
        model = QUERY_MODELS.get(action, AnnotationSubmission)
    fields = {key: value for key, value in payload.items() if value is not None}
    try:
        return model.model_validate(fields)
    except ValidationError as exc:
        if model is AnnotationSubmission:
            raise MissingFieldError("Missing required fields") from exc
        raise MissingFieldError("Device ID is required") from exc
