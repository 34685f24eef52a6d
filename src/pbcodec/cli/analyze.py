"""Message analysis CLI commands."""

from __future__ import annotations

import importlib.util
import inspect
import sys
from pathlib import Path

import structlog

from ..codec.schema import MessageSchema
from ..models.base import BaseMessage
from ..protobuf import to_proto_schema

log = structlog.get_logger(__name__)


def load_message_classes(file_path: Path) -> list[type[BaseMessage]]:
    """Import a Python file and return the BaseMessage subclasses it defines.

    Args:
        file_path: Path to Python file containing message definitions

    Returns:
        Message classes in definition order
    """
    spec = importlib.util.spec_from_file_location("user_module", file_path)
    if spec is None or spec.loader is None:
        raise ValueError(f"Could not load module from {file_path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules["user_module"] = module
    spec.loader.exec_module(module)

    # Module namespace order is definition order
    message_classes = [
        obj
        for obj in vars(module).values()
        if inspect.isclass(obj)
        and issubclass(obj, BaseMessage)
        and obj is not BaseMessage
        # Only classes defined in this file, not imported ones
        and obj.__module__ == "user_module"
    ]
    log.debug("messages_loaded", path=str(file_path), count=len(message_classes))
    return message_classes


def analyze_file(file_path: Path) -> None:
    """Print the descriptor table of every message class in a Python file.

    Args:
        file_path: Path to Python file containing message definitions
    """
    message_classes = load_message_classes(file_path)
    if not message_classes:
        print(f"No BaseMessage classes found in {file_path}")
        return

    print("|" * 7, "pbcodec: Protocol Buffer wire-format codec", "|" * 7)
    print(f"{len(message_classes)} message{'s' if len(message_classes) != 1 else ''} loaded.")
    print()

    for msg_class in message_classes:
        analyze_message_class(msg_class)


def analyze_message_class(msg_class: type[BaseMessage]) -> None:
    """Print the descriptor table of a single message class.

    Args:
        msg_class: Message class to analyze
    """
    schema = MessageSchema.from_model(msg_class)
    required = sum(1 for field in schema.fields if field.is_required)

    print(f"{'=' * 19} {msg_class.__name__} {'=' * 19}")
    print(f"Fields: {len(schema)}, required: {required}")
    if msg_class.wire_max_bytes is not None:
        print(f"Allowed maximum size of message: {msg_class.wire_max_bytes} bytes")
    print()

    for field in schema.fields:
        field_desc = f"{field.number}. {field.name}"
        type_desc = f"{field.label.value} {field.type_name} ({field.wire_type.name})"
        dots = "." * max(1, 54 - len(field_desc) - len(type_desc))
        extras = []
        if field.packed:
            extras.append("packed")
        if field.default is not None:
            extras.append(f"default={field.default!r}")
        if field.enum_type is not None:
            extras.append(f"enum: {len(field.enum_type)} values")
        suffix = f" [{', '.join(extras)}]" if extras else ""
        print(f"        {field_desc}{dots}{type_desc}{suffix}")

    print()


def proto_file(file_path: Path) -> None:
    """Print a proto2 schema for every message class in a Python file.

    Args:
        file_path: Path to Python file containing message definitions
    """
    message_classes = load_message_classes(file_path)
    if not message_classes:
        print(f"No BaseMessage classes found in {file_path}")
        return

    for msg_class in message_classes:
        print(f"// {msg_class.__name__}")
        print(to_proto_schema(msg_class))
