from __future__ import annotations

from enum import Enum

from domain.exceptions import UnsupportedMethodError


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    @classmethod
    def parse(cls, value: "HttpMethod | str | None") -> "HttpMethod":
        if isinstance(value, HttpMethod):
            return value
        if value is None or value == "":
            return cls.GET
        try:
            return cls(str(value).upper())
        except ValueError:
            raise UnsupportedMethodError(value) from None

    @property
    def has_body(self) -> bool:
        return self in _BODY_METHODS

    @property
    def is_json(self) -> bool:
        # body を持つメソッドは JSON として送る
        return self.has_body


_BODY_METHODS = frozenset({HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH})
