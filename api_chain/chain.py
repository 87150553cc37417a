from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from .conditions import ConditionEvaluator
from .config import RawConfig, RuleSpec, parse_chain_config
from .errors import ChainError, ConditionError, DispatchError
from .placeholders import resolve_payload, resolve_string
from .response import ResponseEntity

logger = logging.getLogger(__name__)

Dispatch = Callable[[str, str, Dict[str, Any], Any], Optional[ResponseEntity]]


def noop_dispatch(target: str, method: str, payload: Dict[str, Any], body: Any) -> ResponseEntity:
    """Stand-in transport for dry runs: every call succeeds with an empty body."""
    return ResponseEntity.empty()


class ChainExecutor:
    """Runs a sequence of conditional calls, threading globals and the previous body through it.

    Rules run strictly one after another. A rule whose condition is false is skipped
    without touching the counters. A rule whose condition cannot be parsed, or whose
    dispatch fails, counts as requested but not completed. Nothing short of a bad
    configuration stops the chain.

    Construction only parses the config; call run() (or use run_chain) to execute.
    """

    def __init__(
        self,
        config: RawConfig,
        dispatch: Optional[Dispatch] = None,
        parent_response: Optional[ResponseEntity] = None,
        globals: Optional[Mapping[str, Any]] = None,
        parent_data: Any = False,
    ) -> None:
        self.rules = parse_chain_config(config)
        self.dispatch: Dispatch = dispatch or noop_dispatch
        self.parent_response = parent_response
        self.parent_data = parent_data
        self.globals: Dict[str, Any] = dict(globals or {})
        self.calls_requested = 0
        self.calls_completed = 0
        self.responses: List[ResponseEntity] = []
        self.conditions = ConditionEvaluator()
        self._ran = False

    @property
    def last_response(self) -> Optional[ResponseEntity]:
        if self.responses:
            return self.responses[-1]
        return self.parent_response

    @property
    def body_context(self) -> Any:
        last = self.last_response
        if last is not None:
            return last.parsed_body
        if self.parent_data is False:
            return None
        return self.parent_data

    def run(self) -> "ChainExecutor":
        if self._ran:
            raise ChainError("Chain has already been executed")
        self._ran = True
        for index, rule in enumerate(self.rules):
            self._run_rule(index, rule)
        logger.info(
            "Chain finished: %d of %d requested calls completed",
            self.calls_completed,
            self.calls_requested,
        )
        return self

    def _run_rule(self, index: int, rule: RuleSpec) -> None:
        try:
            triggered = self.conditions.evaluate(rule.condition)
        except ConditionError as exc:
            self.calls_requested += 1
            logger.warning("Rule %d not completed, bad condition %r: %s", index, rule.condition, exc)
            return
        if not triggered:
            logger.debug("Rule %d skipped", index)
            return
        self.calls_requested += 1

        body = self.body_context
        target = resolve_string(rule.target, self.globals, body)
        payload = resolve_payload(rule.payload, self.globals, body)
        logger.debug("Rule %d dispatching %s %s", index, rule.method, target)
        try:
            response = self.dispatch(target, rule.method, payload, body)
        except DispatchError as exc:
            logger.warning("Rule %d not completed, dispatch failed: %s", index, exc)
            return
        except Exception:
            logger.exception("Rule %d not completed, dispatch raised for %s", index, target)
            return
        if response is None or not response.success:
            logger.warning("Rule %d not completed, dispatch reported failure for %s", index, target)
            return

        self.calls_completed += 1
        self.responses.append(response)
        if rule.propagate and isinstance(response.parsed_body, Mapping):
            self.globals.update(response.parsed_body)

    def get_call_per(self) -> float:
        """Share of requested calls that completed; 0 when nothing was requested."""
        if self.calls_requested == 0:
            return 0
        return self.calls_completed / self.calls_requested

    def get_output(self) -> Dict[str, Any]:
        return {
            "parentData": self.parent_data,
            "callsRequested": self.calls_requested,
            "callsCompleted": self.calls_completed,
            "globals": dict(self.globals),
            "responses": [r.to_dict() for r in self.responses],
            "lastResponse": self.responses[-1].to_dict() if self.responses else None,
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.get_output(), indent=indent, default=str)


def run_chain(
    config: RawConfig,
    dispatch: Optional[Dispatch] = None,
    parent_response: Optional[ResponseEntity] = None,
    globals: Optional[Mapping[str, Any]] = None,
    parent_data: Any = False,
) -> ChainExecutor:
    return ChainExecutor(config, dispatch, parent_response, globals, parent_data).run()
