"""
Dumping and loading YAML through pydantic.

Values are first converted to JSON by pydantic (rationals become strings
such as `"1/10"`) and then rendered with PyYAML. Multiline strings (such
as rendered error messages in diagnostics) are dumped in block style.
"""

from typing import Any

import pydantic
import yaml


def dump_yaml[T](
    type: type[T] | Any, obj: T, *, exclude_none: bool = False
) -> str:
    """
    Render a value as YAML, using `type` to guide serialization.

    We allow `type` to be `Any` because pyright does not recognize
    unions and generic aliases as being members of `type`.
    """
    adapter = pydantic.TypeAdapter[T](type)
    data = adapter.dump_python(
        obj, mode="json", exclude_none=exclude_none, warnings="error"
    )
    return pretty_yaml(data)


def load_yaml[T](type: type[T] | Any, s: str) -> T:
    """
    Parse YAML and validate the result against `type`.

    Raises:
        ValidationError: if the content does not match `type`.
    """
    adapter = pydantic.TypeAdapter[T](type)
    return adapter.validate_python(yaml.safe_load(s))


#####
##### Block-style dumper
#####


class _BlockStr(str):
    pass


class _BlockStyleDumper(yaml.SafeDumper):
    def increase_indent(self, flow: bool = False, indentless: bool = False):
        return super().increase_indent(flow, False)


def _represent_block_str(dumper: yaml.SafeDumper, data: _BlockStr):
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")


_BlockStyleDumper.add_representer(_BlockStr, _represent_block_str)


def _mark_multiline(obj: object) -> object:
    match obj:
        case dict():
            items = obj.items()  # type: ignore
            return {k: _mark_multiline(v) for k, v in items}
        case list() | tuple():
            return [_mark_multiline(v) for v in obj]  # type: ignore
        case str() if "\n" in obj:
            return _BlockStr(obj)
        case _:
            return obj


def pretty_yaml(obj: object, width: int = 100) -> str:
    """
    Dump a JSON-like value in YAML, preserving key order.
    """
    return yaml.dump(
        _mark_multiline(obj),
        Dumper=_BlockStyleDumper,
        sort_keys=False,
        width=width,
        allow_unicode=True,
        default_flow_style=False,
    )
