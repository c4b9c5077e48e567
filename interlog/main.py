from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from .config import config_from_env, config_to_dict, default_config, load_config, validate_config
from .replay import replay_events
from .trace import read_events
from .types import LINE_TAGS, InteractionLogConfig
from .utils import load_env_file, quiet_loggers, setup_logger, write_json


logger = setup_logger("interlog.cli")


def _resolve_config(args: argparse.Namespace) -> InteractionLogConfig:
    config = load_config(args.config) if args.config else default_config()
    config = config_from_env(config)
    if getattr(args, "max_lines", None) is not None:
        config.retention_max = args.max_lines if args.max_lines > 0 else None
    if getattr(args, "hide", None):
        config.hidden_tags = list(args.hide)
    errors = validate_config(config)
    if errors:
        raise SystemExit("Invalid config: " + "; ".join(errors))
    return config


def cmd_replay(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    output = replay_events(read_events(args.script), config=config)
    text = output.text(config.hidden_tags)
    if text:
        print(text)
    logger.info("Replayed %s into %d lines", args.script, len(output))
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    payload = config_to_dict(_resolve_config(args))
    if args.output:
        write_json(args.output, payload)
        logger.info("Wrote config to %s", args.output)
    else:
        print(json.dumps(payload, indent=2, sort_keys=True))
    return 0


def cmd_demo(args: argparse.Namespace) -> int:
    try:
        from .tui import InteractionLogDemo
    except RuntimeError as exc:
        print(str(exc))
        print("Install with: pip install textual rich")
        return 1

    config = _resolve_config(args)
    # keep diagnostics off the terminal the app is drawing on
    quiet_loggers("interlog", keep=("interlog.demo",))
    if not args.start_hidden:
        config.initially_visible = True
    InteractionLogDemo(config=config).run()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="interlog", description="Human-readable interaction timeline")
    parser.add_argument("--config", default=None, help="JSON config file")
    parser.add_argument("--env-file", default=".env", help="Environment file to load (default: .env)")
    sub = parser.add_subparsers(dest="command", required=True)

    replay = sub.add_parser("replay", help="Render a recorded JSONL host-event script")
    replay.add_argument("script", help="Path to the JSONL script")
    replay.add_argument("--max-lines", type=int, default=None, help="Retention limit, 0 for unlimited")
    replay.add_argument("--hide", action="append", choices=LINE_TAGS, help="Hide lines/segments with this tag")
    replay.set_defaults(func=cmd_replay)

    config = sub.add_parser("config", help="Print the effective configuration")
    config.add_argument("--output", default=None, help="Write JSON to this path instead of stdout")
    config.set_defaults(func=cmd_config)

    demo = sub.add_parser("demo", help="Run the interactive Textual demo")
    demo.add_argument("--hide", action="append", choices=LINE_TAGS, help="Initially hidden tag")
    demo.add_argument("--start-hidden", action="store_true", help="Start with the log view hidden (F8 shows it)")
    demo.set_defaults(func=cmd_demo)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    load_env_file(args.env_file)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
