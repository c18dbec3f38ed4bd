from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Sequence

from .config import config_sha256, load_config
from .errors import ConfigError, PayloadError, ProviderError
from .providers import PROVIDERS, get_provider
from .run_log import RunLogger


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="social_rss")

    subparsers = parser.add_subparsers(dest="command", required=True)

    norm = subparsers.add_parser(
        "normalize",
        help="Normalize a raw provider response (JSON) into a feed.",
    )
    norm.add_argument(
        "--provider",
        required=True,
        choices=sorted(PROVIDERS),
        help="Provider that produced the payload.",
    )
    norm.add_argument(
        "--input",
        required=True,
        help="Path to the raw JSON response, or '-' for stdin.",
    )
    norm.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file (defaults apply when omitted).",
    )
    norm.add_argument(
        "--out",
        default=None,
        help="Write feed JSON here instead of stdout.",
    )
    norm.add_argument(
        "--log",
        default=None,
        help="Path for a JSONL run log (overwritten each run).",
    )
    norm.set_defaults(_handler=_cmd_normalize)

    return parser


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


def read_payload(source: str) -> Any:
    """Read and decode a raw provider response from a path or '-' (stdin)."""
    try:
        if source == "-":
            text = sys.stdin.read()
        else:
            text = Path(source).read_text(encoding="utf-8")
    except OSError as e:
        raise PayloadError(f"Failed to read payload: {source}") from e

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise PayloadError(f"Payload is not valid JSON ({source}): {e}") from e


def _run_normalize(args: argparse.Namespace, log: RunLogger | None) -> int:
    if log is not None:
        log.set_provider(args.provider)
        log.info(
            "normalize_started",
            input=str(args.input),
            config_path=str(args.config) if args.config else None,
        )

    cfg = load_config(args.config)
    provider = get_provider(args.provider)

    if log is not None:
        log.info("config_loaded", config_sha256=config_sha256(cfg))

    payload = read_payload(args.input)
    feed = provider.normalize(payload, cfg, logger=log)

    text = json.dumps(
        feed.to_dict(),
        ensure_ascii=cfg.output.ensure_ascii,
        indent=cfg.output.indent or None,
    )

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text + "\n", encoding="utf-8")
        print(f"items={len(feed.items)}")
        print(f"feed_json={out_path}")
    else:
        print(text)

    if log is not None:
        log.info("normalize_completed", items=len(feed.items), out=args.out)
    return 0


def _cmd_normalize(args: argparse.Namespace) -> int:
    if not args.log:
        return _run_normalize(args, None)

    with RunLogger.open(args.log, overwrite=True) as log:
        try:
            return _run_normalize(args, log)
        except Exception as e:
            log.exception("normalize_failed", exc=e)
            raise


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        handler = getattr(args, "_handler")
        return int(handler(args))
    except ConfigError as e:
        _eprint(str(e))
        return 2
    except (ProviderError, PayloadError) as e:
        _eprint(str(e))
        return 3
    except KeyboardInterrupt:
        _eprint("Interrupted")
        return 130
    except Exception as e:
        _eprint(f"Unexpected error: {e}")
        return 1
