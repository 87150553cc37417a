from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from pydantic import BaseModel, Field

from .response import ResponseEntity

logger = logging.getLogger(__name__)


class HttpDispatcherConfig(BaseModel):
    base_url: str = "http://127.0.0.1:5000"
    timeout: float = 5.0
    headers: Dict[str, str] = Field(default_factory=dict)
    verify_tls: bool = True


class HttpDispatcher:
    """Dispatch capability that performs each chain call over HTTP."""

    query_methods = {"GET", "HEAD", "DELETE"}

    def __init__(self, config: HttpDispatcherConfig | None = None) -> None:
        self.config = config or HttpDispatcherConfig()

    def url_for(self, target: str) -> str:
        if target.startswith(("http://", "https://")):
            return target
        return self.config.base_url.rstrip("/") + "/" + target.lstrip("/")

    def __call__(self, target: str, method: str, payload: Dict[str, Any], body: Any) -> Optional[ResponseEntity]:
        url = self.url_for(target)
        verb = method.upper()
        kwargs: Dict[str, Any] = {
            "headers": self.config.headers,
            "timeout": self.config.timeout,
            "verify": self.config.verify_tls,
        }
        if verb in self.query_methods:
            kwargs["params"] = payload
        else:
            kwargs["json"] = payload
        try:
            resp = requests.request(verb, url, **kwargs)
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", verb, url, exc)
            return None
        return self.parse(resp)

    @staticmethod
    def parse(resp: requests.Response) -> ResponseEntity:
        try:
            parsed = resp.json()
        except ValueError:
            parsed = None
        return ResponseEntity(
            headers={k: v for k, v in resp.headers.items()},
            raw_body=resp.text,
            status_code=resp.status_code,
            cookies=resp.cookies.get_dict(),
            parsed_body=parsed,
            success=resp.ok,
        )
