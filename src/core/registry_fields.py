"""Type-safe field parsing helpers for source registry files.

This module centralizes primitive parsing so the registry loader stays
concise and produces consistent validation errors.
"""

from __future__ import annotations

from typing import Mapping, Sequence, TypeVar, cast

from core.errors import CubeRegistryError

LiteralT = TypeVar("LiteralT", bound=str)


def expect_mapping(value: object, context: str) -> Mapping[str, object]:
    """Return ``value`` as a string-keyed mapping."""
    if isinstance(value, Mapping):
        normalized_mapping = {}
        for key, payload in value.items():
            if not isinstance(key, str):
                raise CubeRegistryError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
            normalized_mapping[key] = payload
        return normalized_mapping
    raise CubeRegistryError(
        f"Invalid {context}: expected object mapping, got {type(value).__name__}."
    )


def expect_sequence(value: object, context: str) -> Sequence[object]:
    """Return ``value`` as a non-string sequence."""
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    raise CubeRegistryError(f"Invalid {context}: expected list, got {type(value).__name__}.")


def required_string(args: Mapping[str, object], field_name: str, context: str) -> str:
    """Read a required non-empty string field."""
    value = optional_string(args, field_name, context)
    if value is None:
        raise CubeRegistryError(f"Invalid {context}: missing required field '{field_name}'.")
    return value


def optional_string(args: Mapping[str, object], field_name: str, context: str) -> str | None:
    """Read an optional string field."""
    value = args.get(field_name)
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    raise CubeRegistryError(f"Invalid {context}: field '{field_name}' must be a string.")


def required_int(args: Mapping[str, object], field_name: str, context: str) -> int:
    """Read a required integer field."""
    value = optional_int(args, field_name, context)
    if value is None:
        raise CubeRegistryError(f"Invalid {context}: missing required field '{field_name}'.")
    return value


def optional_int(args: Mapping[str, object], field_name: str, context: str) -> int | None:
    """Read an optional integer field."""
    value = args.get(field_name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise CubeRegistryError(f"Invalid {context}: field '{field_name}' must be an integer.")
    return value


def optional_bool(
    args: Mapping[str, object],
    field_name: str,
    default_value: bool,
    context: str,
) -> bool:
    """Read an optional boolean field."""
    value = args.get(field_name)
    if value is None:
        return default_value
    if isinstance(value, bool):
        return value
    raise CubeRegistryError(f"Invalid {context}: field '{field_name}' must be true/false.")


def parse_choice(
    value: str,
    supported: Sequence[LiteralT],
    field_name: str,
    context: str,
) -> LiteralT:
    """Validate ``value`` against the supported literal values."""
    if value in supported:
        return cast(LiteralT, value)
    supported_rows = ", ".join(supported)
    raise CubeRegistryError(
        f"Invalid {field_name} '{value}' in {context}. Use one of: {supported_rows}."
    )


def parse_path(value: object, context: str) -> tuple[str | int, ...]:
    """Parse a scenario path given as a list of steps or a dotted string."""
    if isinstance(value, str):
        steps: Sequence[object] = [step for step in value.split(".") if step]
    else:
        steps = expect_sequence(value, f"{context} path")
    parsed: list[str | int] = []
    for step in steps:
        if isinstance(step, bool) or not isinstance(step, (str, int)):
            raise CubeRegistryError(
                f"Invalid {context} path: steps must be strings or integers, got {step!r}."
            )
        parsed.append(step)
    if not parsed:
        raise CubeRegistryError(f"Invalid {context} path: at least one step is required.")
    return tuple(parsed)


def validate_keys(mapping: Mapping[str, object], allowed_keys: set[str], context: str) -> None:
    """Reject fields outside ``allowed_keys``."""
    unknown_keys = sorted(set(mapping) - allowed_keys)
    if unknown_keys:
        raise CubeRegistryError(f"{context} contains unknown fields: {', '.join(unknown_keys)}.")
