"""
Run the tracker TUI.

Usage:
    python -m initiative.interface [--server-url URL] [--advance-key KEY]
"""

import argparse
import logging

from .config import apply_env, load_config
from .tui import InitiativeTUI


def main():
    """Entry point for the Textual TUI."""
    parser = argparse.ArgumentParser(description="Initiative tracker (TUI)")
    parser.add_argument(
        "--data-dir",
        default=".",
        help="Directory holding .initiative_config.json (default: .)",
    )
    parser.add_argument(
        "--server-url",
        help="Tracker server to forward reorders to (default: offline)",
    )
    parser.add_argument(
        "--advance-key",
        help="Key that advances the turn (default: space)",
    )
    parser.add_argument(
        "--log-file",
        default=".initiative.log",
        help="Log destination; the terminal belongs to the TUI",
    )
    args = parser.parse_args()

    config = apply_env(load_config(args.data_dir))
    if args.server_url:
        config["server_url"] = args.server_url
    if args.advance_key:
        config["advance_key"] = args.advance_key

    logging.basicConfig(
        filename=args.log_file,
        level=config.get("log_level", "INFO"),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    )

    app = InitiativeTUI(config)
    app.run()


if __name__ == "__main__":
    main()
