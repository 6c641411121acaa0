"""
Field sensitivity for audit records.

A field is tagged once, where the model is declared, and `masked_dump` reads
the tag from the model's static field table. Nothing is inspected at runtime
beyond what pydantic already collected.
"""

from typing import Any

from pydantic import BaseModel, Field

MASK = "*****"
_SENSITIVE_KEY = "sensitive"


def sensitive(default: Any = ..., **kwargs: Any) -> Any:
    """`Field(...)` tagged as sensitive (passwords, tokens, codes)."""
    return Field(default, json_schema_extra={_SENSITIVE_KEY: True}, **kwargs)


def is_sensitive(model: type[BaseModel], name: str) -> bool:
    extra = model.model_fields[name].json_schema_extra
    return isinstance(extra, dict) and bool(extra.get(_SENSITIVE_KEY))


def masked_dump(model: BaseModel) -> dict[str, Any]:
    cls = type(model)
    out: dict[str, Any] = {}
    for name in cls.model_fields:
        value = getattr(model, name)
        if is_sensitive(cls, name):
            out[name] = MASK if value is not None else None
        elif isinstance(value, BaseModel):
            out[name] = masked_dump(value)
        else:
            out[name] = value
    return out
