from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Sequence, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .conditions import NEVER
from .errors import ChainError


class RuleSpec(BaseModel):
    """One configured step of a chain.

    Accepts both the field names and the short config keys
    (doOn, href, data, return).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    condition: str = Field(default=NEVER, validation_alias=AliasChoices("condition", "doOn"))
    target: str = Field(default="/", validation_alias=AliasChoices("target", "href"))
    method: str = "get"
    payload: Dict[str, Any] = Field(default_factory=dict, validation_alias=AliasChoices("payload", "data"))
    propagate: bool = Field(default=True, validation_alias=AliasChoices("propagate", "return"))

    @field_validator("payload", mode="before")
    @classmethod
    def _empty_list_is_empty_payload(cls, v: Any) -> Any:
        # JSON encoders for some languages emit [] for an empty map
        if isinstance(v, list) and not v:
            return {}
        return v


RawConfig = Union[str, bytes, Sequence[Any]]


def _fail(reason: str) -> ChainError:
    return ChainError(f"Error while parsing chain config: {reason}")


def parse_chain_config(raw: RawConfig) -> Tuple[RuleSpec, ...]:
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise _fail(exc.msg) from exc
        except (ValueError, RecursionError) as exc:
            raise _fail(str(exc) or type(exc).__name__) from exc
    if not isinstance(raw, (list, tuple)):
        raise _fail("expected a list of rules")
    rules = []
    for i, record in enumerate(raw):
        if isinstance(record, list) and not record:
            record = {}
        if isinstance(record, RuleSpec):
            rules.append(record)
            continue
        if not isinstance(record, dict):
            raise _fail(f"rule {i} is not an object")
        try:
            rules.append(RuleSpec.model_validate(record))
        except ValidationError as exc:
            raise _fail(f"rule {i}: {exc.errors()[0]['msg']}") from exc
    return tuple(rules)


def load_chain_config(path: str | Path) -> Tuple[RuleSpec, ...]:
    with open(path, "rb") as f:
        data = f.read()
    return parse_chain_config(data)
