"""Base message class and pbcodec-specific Pydantic configuration.

This module provides the BaseMessage class that all pbcodec messages should inherit from.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict

from ..codec.schema import MessageSchema, is_present, missing_required


class BaseMessage(BaseModel):
    """Base class for all pbcodec messages.

    Each field carries a ``Wire(...)`` marker giving its field number, wire
    type and label. Singular fields default to ``None`` (or their declared
    default); repeated fields default to ``[]``.

    Presence is tracked per field: a singular field counts as set once it has
    been assigned a non-None value, even when that value equals the default.

    pbcodec-specific options can be configured as ClassVar attributes:

    Example:
        >>> from typing import Annotated, ClassVar, List, Optional
        >>> class SearchRequest(BaseMessage):
        ...     query: Annotated[Optional[str], Wire(1, "string", "required")] = None
        ...     page: Annotated[Optional[int], Wire(2, "int32")] = 0
        ...     ids: Annotated[List[int], Wire(3, "int32", "repeated", packed=True)] = []
        ...
        ...     wire_max_bytes: ClassVar[Optional[int]] = 256
        >>> request = SearchRequest(query="fish")
        >>> request.page, request.has_field("page")
        (0, False)

    Attributes:
        wire_max_bytes: Maximum encoded size in bytes (optional, checked by encode)
    """

    model_config = ConfigDict(
        strict=False,
        arbitrary_types_allowed=True,
        validate_assignment=True,
        extra="forbid",
    )

    wire_max_bytes: ClassVar[int | None] = None

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        """Build the descriptor table as soon as the class is complete.

        Declaration errors therefore surface as SchemaError at class
        definition. Classes with unresolved forward references are built on
        first use instead.
        """
        super().__pydantic_init_subclass__(**kwargs)
        if cls.__pydantic_complete__:
            MessageSchema.from_model(cls)

    @classmethod
    def wire_schema(cls) -> MessageSchema:
        """Return the descriptor table for this message type."""
        return MessageSchema.from_model(cls)

    def has_field(self, name: str) -> bool:
        """Whether a field is set (singular) or non-empty (repeated).

        Raises:
            KeyError: If the message has no field called name
        """
        return is_present(self, self.wire_schema().field_by_name(name))

    def clear_field(self, name: str) -> None:
        """Return a field to its unset state.

        Singular fields read back their declared default afterwards; repeated
        fields are emptied.

        Raises:
            KeyError: If the message has no field called name
        """
        descriptor = self.wire_schema().field_by_name(name)
        if descriptor.is_repeated:
            getattr(self, name).clear()
            return
        setattr(self, name, descriptor.default)
        self.model_fields_set.discard(name)

    def is_initialized(self) -> bool:
        """Whether every required field, at every nesting level, is set."""
        return missing_required(self, type(self).__name__) is None

    def __getitem__(self, name: str) -> Any:
        self.wire_schema().field_by_name(name)
        return getattr(self, name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.wire_schema().field_by_name(name)
        setattr(self, name, value)
