from __future__ import annotations


class DomainError(Exception):
    pass


class ValidationError(DomainError):
    pass


class EntityNotFoundError(DomainError):
    pass


class UnsupportedMethodError(ValidationError):
    def __init__(self, method: object) -> None:
        super().__init__(f"Unsupported HTTP method: {method}")
        self.method = method
