from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class ResponseEntity:
    headers: Dict[str, str] = field(default_factory=dict)
    raw_body: str = ""
    status_code: int = 0
    cookies: Dict[str, str] = field(default_factory=dict)
    parsed_body: Any = None
    success: bool = True

    @staticmethod
    def empty() -> "ResponseEntity":
        """Trivially successful response with no content."""
        return ResponseEntity(parsed_body={})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headers": dict(self.headers),
            "rawBody": self.raw_body,
            "statusCode": self.status_code,
            "cookies": dict(self.cookies),
            "parsedBody": self.parsed_body,
            "success": self.success,
        }
