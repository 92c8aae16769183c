"""
Pydantic helpers for validating and rendering plain values.
"""

from collections.abc import Mapping, Sequence
from dataclasses import fields, is_dataclass
from typing import Any, cast

import pydantic

ValidationError = pydantic.ValidationError


def load_dataclass[T](
    type: type[T], data: Mapping[str, Any], *, source: str = "input"
) -> T:
    """
    Validate a mapping against a dataclass. Missing fields take their
    default value and unknown fields are rejected.

    Raises:
        ValueError: if `data` has fields that `type` does not have.
        ValidationError: if some field values are invalid.
    """
    assert is_dataclass(type)
    known = {f.name for f in fields(type)}
    unknown = sorted(k for k in data if k not in known)
    if unknown:
        raise ValueError(f"Unknown fields in {source}: {unknown}")
    adapter = pydantic.TypeAdapter[T](type)
    return adapter.validate_python(dict(data))


def json_value(obj: object) -> object:
    """
    Convert a value into a JSON value, recursively. Leaves that are not
    JSON values (rationals, intervals...) are rendered with `str`.
    """
    match obj:
        case None | bool() | int() | float() | str():
            return obj
        case Mapping():
            obj = cast(Mapping[object, object], obj)
            return {str(k): json_value(v) for k, v in obj.items()}
        case list() | tuple():
            obj = cast(Sequence[object], obj)
            return [json_value(v) for v in obj]
        case _:
            return str(obj)
