"""Shared pydantic base for camelCase wire models."""

from __future__ import annotations

from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, HttpUrl, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """snake_case in Python, camelCase on the wire; accepts either on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SuccessResponse(ApiModel):
    success: bool = True


class UserSummary(ApiModel):
    """Compact user reference embedded in other resources."""

    id: str
    handle: str
    full_name: str
    avatar_url: str | None = None


_http_url: TypeAdapter[HttpUrl] = TypeAdapter(HttpUrl)


def _check_http_url(value: str) -> str:
    try:
        _http_url.validate_python(value)
    except ValidationError as e:
        msg = "must be a valid http(s) URL"
        raise ValueError(msg) from e
    return value


# URL validated on input but stored and echoed exactly as sent.
HttpUrlStr = Annotated[str, AfterValidator(_check_http_url)]
