from __future__ import annotations

import hashlib
import json
import time
from pathlib import Path
from typing import Any, Dict, Iterator, Optional


def _digest(entry: Dict[str, Any]) -> str:
    blob = json.dumps(entry, sort_keys=True, default=str)
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()


class AuditLogger:
    """Append-only JSONL trail of chain runs.

    Every entry stores the digest of the entry before it under "prev", so editing or
    dropping a line breaks verify(). The newest digest is cached in a ".last" sidecar.
    """

    def __init__(self, path: str | Path = "artifacts/audit/audit.jsonl") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.head_path = self.path.with_suffix(".last")

    def last_hash(self) -> str:
        if not self.head_path.exists():
            return ""
        return self.head_path.read_text(encoding="utf-8").strip()

    def log(self, event: Dict[str, Any]) -> str:
        entry = {"prev": self.last_hash(), "event": event, "ts": time.time()}
        digest = _digest(entry)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps({"hash": digest, **entry}, default=str) + "\n")
        self.head_path.write_text(digest, encoding="utf-8")
        return digest

    def log_run(self, chain: Any, config: str | Path, report: Optional[str | Path] = None, dry_run: bool = False) -> str:
        """Record one finished ChainExecutor run."""
        return self.log({
            "stage": "run",
            "config": str(config),
            "dry_run": dry_run,
            "requested": chain.calls_requested,
            "completed": chain.calls_completed,
            "call_per": chain.get_call_per(),
            "report": str(report) if report is not None else None,
        })

    def entries(self) -> Iterator[Dict[str, Any]]:
        if not self.path.exists():
            return
        with self.path.open("r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    yield json.loads(line)

    def verify(self) -> bool:
        prev = ""
        for entry in self.entries():
            digest = entry.pop("hash", "")
            if entry.get("prev") != prev or _digest(entry) != digest:
                return False
            prev = digest
        return True
