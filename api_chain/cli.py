import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .audit import AuditLogger
from .config import load_chain_config
from .errors import ChainError


def ensure_directories() -> None:
    Path("artifacts").mkdir(parents=True, exist_ok=True)
    Path("artifacts/audit").mkdir(parents=True, exist_ok=True)


def parse_globals(pairs: List[str]) -> Dict[str, Any]:
    """Turn KEY=VALUE pairs into a dict; values that parse as JSON keep their type."""
    out: Dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ChainError(f"Invalid global {pair!r}, expected KEY=VALUE")
        k, v = pair.split("=", 1)
        try:
            out[k.strip()] = json.loads(v)
        except ValueError:
            out[k.strip()] = v
    return out


def command_run(args: argparse.Namespace) -> None:
    from .adapters import HttpDispatcher, HttpDispatcherConfig
    from .chain import ChainExecutor

    ensure_directories()
    try:
        rules = load_chain_config(args.config)
        dispatch = None
        if not args.dry_run:
            dispatch = HttpDispatcher(HttpDispatcherConfig(base_url=args.base_url, timeout=args.timeout))
        chain = ChainExecutor(
            rules,
            dispatch=dispatch,
            globals=parse_globals(args.globals),
            parent_data=args.parent_data if args.parent_data is not None else False,
        ).run()
    except (ChainError, OSError) as exc:
        print(exc)
        sys.exit(1)

    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(chain.to_json(indent=2), encoding="utf-8")
    AuditLogger().log_run(chain, args.config, report=out, dry_run=args.dry_run)
    print(f"{chain.calls_completed} of {chain.calls_requested} requested calls completed")
    print(f"Chain report saved to {out}")


def command_validate(args: argparse.Namespace) -> None:
    try:
        rules = load_chain_config(args.config)
    except (ChainError, OSError) as exc:
        print(exc)
        sys.exit(1)
    print(f"{args.config}: {len(rules)} rules OK")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run declarative chains of conditional API calls")
    parser.add_argument("--log-level", default="WARNING")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_run = subparsers.add_parser("run", help="Execute a chain and write its report")
    p_run.add_argument("--config", required=True)
    p_run.add_argument("--base-url", default="http://127.0.0.1:5000")
    p_run.add_argument("--global", dest="globals", action="append", default=[], metavar="KEY=VALUE")
    p_run.add_argument("--parent-data", default=None)
    p_run.add_argument("--timeout", type=float, default=5.0)
    p_run.add_argument("--dry-run", action="store_true", help="Complete every call without any network traffic")
    p_run.add_argument("--output", default="artifacts/chain_report.json")
    p_run.set_defaults(func=command_run)

    p_validate = subparsers.add_parser("validate", help="Parse a chain config and report problems")
    p_validate.add_argument("--config", required=True)
    p_validate.set_defaults(func=command_validate)

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    args.func(args)


if __name__ == "__main__":
    main()
