#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path


def main() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))
    parser = argparse.ArgumentParser(description="Interaction log TUI demo")
    parser.add_argument("--config", default=None)
    parser.add_argument("--env-file", default=".env")
    parser.add_argument("--idle", type=float, default=None, help="Idle threshold in seconds")
    parser.add_argument("--max-lines", type=int, default=None, help="Retention limit, 0 for unlimited")
    args = parser.parse_args()

    from interlog.config import config_from_env, default_config, load_config, validate_config
    from interlog.utils import load_env_file

    load_env_file(args.env_file)
    config = config_from_env(load_config(args.config) if args.config else default_config())
    config.initially_visible = True
    if args.idle is not None:
        config.idle_threshold = args.idle
    if args.max_lines is not None:
        config.retention_max = args.max_lines if args.max_lines > 0 else None
    errors = validate_config(config)
    if errors:
        print("Invalid config: " + "; ".join(errors))
        sys.exit(1)

    try:
        from interlog.tui import InteractionLogDemo
    except RuntimeError as exc:
        print(str(exc))
        print("Install with: pip install textual rich")
        sys.exit(1)

    InteractionLogDemo(config=config).run()


if __name__ == "__main__":
    main()
