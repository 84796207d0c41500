"""Response envelope shared by every API endpoint.

Success:  {"status": 0, "message": <str>, "data": <json>, "errors": null}
Failure:  {"status": 1, "message": <str>, "data": null, "errors": <json>}

The schema helpers build drf-spectacular serializers matching these shapes
for OpenAPI documentation; they do not affect runtime behaviour.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TypeAlias

from drf_spectacular.utils import inline_serializer
from rest_framework import serializers, status
from rest_framework.response import Response
from rest_framework.serializers import Serializer

JSONScalar: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]


def to_json_value(value: object) -> JSONValue:
    """Coerce DRF error details and other objects into plain JSON values."""

    if value is None or isinstance(value, str | int | float | bool):
        return value
    if isinstance(value, Mapping):
        return {str(k): to_json_value(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [to_json_value(v) for v in value]
    return str(value)


def envelope(
    *,
    ok: bool,
    message: str,
    data: JSONValue | None = None,
    errors: JSONValue | None = None,
) -> dict[str, JSONValue]:
    return {
        "status": 0 if ok else 1,
        "message": message,
        "data": data,
        "errors": errors,
    }


def success_response(
    data: JSONValue | None,
    message: str = "OK",
    *,
    status_code: int = status.HTTP_200_OK,
) -> Response:
    return Response(
        envelope(ok=True, message=message, data=data), status=status_code
    )


def error_response(
    message: str,
    *,
    errors: JSONValue | None = None,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> Response:
    return Response(
        envelope(ok=False, message=message, errors=errors),
        status=status_code,
    )


def success_envelope_serializer(
    name: str,
    *,
    data: serializers.Field,
) -> Serializer:
    """OpenAPI schema matching `success_response`."""

    return inline_serializer(
        name=name,
        fields={
            "status": serializers.IntegerField(),
            "message": serializers.CharField(),
            "data": data,
            "errors": serializers.JSONField(allow_null=True),
        },
    )


def error_envelope_serializer(name: str) -> Serializer:
    """OpenAPI schema matching `custom_exception_handler` output."""

    return inline_serializer(
        name=name,
        fields={
            "status": serializers.IntegerField(),
            "message": serializers.CharField(),
            "data": serializers.JSONField(allow_null=True),
            "errors": serializers.JSONField(allow_null=True),
        },
    )
