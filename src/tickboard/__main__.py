"""Entry point for tickboard CLI."""

import logging
import os
import sys
from pathlib import Path

NOUNS = {"init", "ticket", "user"}


def _configure_logging() -> None:
    level = os.environ.get("TICKBOARD_LOG", "WARNING").upper()
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        level=getattr(logging, level, logging.WARNING),
    )


def main():
    _configure_logging()

    # No subcommand or non-noun argument = TUI mode
    if len(sys.argv) < 2 or (sys.argv[1] not in NOUNS and not sys.argv[1].startswith("-")):
        from tickboard.ui import TickboardApp

        path = sys.argv[1] if len(sys.argv) > 1 and not sys.argv[1].startswith("-") else "."
        app = TickboardApp(Path(path).resolve())
        app.run()
        return

    from tickboard.cli import build_parser

    parser = build_parser()
    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
