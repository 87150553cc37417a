from __future__ import annotations

import json
import re
from typing import Any, Dict, Mapping, Optional

_MISSING = object()

_BODY_PATH = r"[A-Za-z0-9_-]+(?:\.[A-Za-z0-9_-]+)*"

_body_re = re.compile(r"\$body\.(" + _BODY_PATH + r")")
# All token families in one pass, so substituted values are never rescanned.
_token_re = re.compile(
    r"\$\{global\.(?P<curly>[^{}]+)\}"
    r"|\$global\.(?P<short>[A-Za-z0-9_]+)"
    r"|\$body\.(?P<body>" + _BODY_PATH + r")"
)


def lookup_path(data: Any, dotted_key: str) -> Any:
    """Walk a dotted path through dicts (by key) and lists (by index).

    Returns the module-level _MISSING sentinel when any segment is absent.
    """
    cur: Any = data
    for part in dotted_key.split("."):
        if isinstance(cur, Mapping):
            if part not in cur:
                return _MISSING
            cur = cur[part]
        elif isinstance(cur, (list, tuple)) and part.isdigit():
            idx = int(part)
            if idx >= len(cur):
                return _MISSING
            cur = cur[idx]
        else:
            return _MISSING
    return cur


def _render(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return str(value)


def resolve_string(template: str, globals: Mapping[str, Any], body: Any) -> str:
    """Substitute $global.x, ${global.x} and $body.path tokens.

    Tokens whose key is missing stay in the output verbatim.
    """

    def sub(m: re.Match) -> str:
        name = m.group("curly") or m.group("short")
        if name is not None:
            return _render(globals[name]) if name in globals else m.group(0)
        value = lookup_path(body, m.group("body"))
        return m.group(0) if value is _MISSING else _render(value)

    return _token_re.sub(sub, template)


def resolve_value(raw: Any, globals: Mapping[str, Any], body: Any) -> Any:
    if isinstance(raw, str):
        m = _body_re.fullmatch(raw)
        if m:
            value = lookup_path(body, m.group(1))
            return raw if value is _MISSING else value
        return resolve_string(raw, globals, body)
    if isinstance(raw, Mapping):
        return {k: resolve_value(v, globals, body) for k, v in raw.items()}
    if isinstance(raw, list):
        return [resolve_value(v, globals, body) for v in raw]
    return raw


def resolve_payload(payload: Optional[Mapping[str, Any]], globals: Mapping[str, Any], body: Any) -> Dict[str, Any]:
    return {k: resolve_value(v, globals, body) for k, v in (payload or {}).items()}
