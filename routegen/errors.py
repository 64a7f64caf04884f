"""Generation-time errors.

Every failure of the generator is a GenerationError subclass. Errors raised
deep inside schema resolution are located (path, method, operationId) by
the caller that knows the context, then re-raised.
"""

from __future__ import annotations


class GenerationError(Exception):
    """Base class for all errors that abort a generation run."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        method: str | None = None,
        operation_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.method = method
        self.operation_id = operation_id

    def locate(
        self,
        *,
        path: str | None = None,
        method: str | None = None,
        operation_id: str | None = None,
    ) -> GenerationError:
        """Fill in missing context; the innermost location wins."""
        self.path = self.path or path
        self.method = self.method or method
        self.operation_id = self.operation_id or operation_id
        return self

    @property
    def context(self) -> str:
        parts = []
        if self.method:
            parts.append(self.method.upper())
        if self.path:
            parts.append(self.path)
        if self.operation_id:
            parts.append(f"({self.operation_id})")
        return " ".join(parts)

    def __str__(self) -> str:
        if self.context:
            return f"{self.context}: {self.message}"
        return self.message


class DocumentError(GenerationError):
    """The document is unreadable or not shaped like an OpenAPI document."""


class UnresolvedReference(GenerationError):
    """A $ref names a component that does not exist."""

    def __init__(self, ref: str, **kwargs: str | None) -> None:
        super().__init__(f"unresolved reference {ref!r}", **kwargs)
        self.ref = ref


class UnsupportedConstruct(GenerationError):
    """Composition keywords, foreign refs, unsupported parameter shapes."""


class InvalidSchema(GenerationError):
    """A schema node is malformed (bad enum values, array without items, ...)."""


class PathParameterMismatch(GenerationError):
    """Path placeholders and declared path parameters disagree."""


class DuplicateOperationId(GenerationError):
    """Two operations share one operationId."""


class InvalidIdentifier(GenerationError):
    """A name cannot be used as a Python identifier."""
