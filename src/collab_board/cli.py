"""Command-line entry point: run the board server or print the saved board."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.console import Console
from rich.table import Table

from .config import BoardConfig, default_config_path, load_board_config
from .coordination.models import ListName
from .coordination.persistence import FileTaskRepository
from .logging_utils import configure_logging


def _resolve_config(args: argparse.Namespace) -> BoardConfig:
    path: Optional[Path] = Path(args.config).expanduser() if args.config else default_config_path(Path.cwd())
    config, err = load_board_config(path)
    if err:
        logger.warning("Ignoring unreadable config {}: {}", path, err)
    return config.with_overrides(
        host=getattr(args, "host", None),
        port=getattr(args, "port", None),
        data_file=args.data_file,
        log_level=getattr(args, "log_level", None),
    )


def _serve(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    configure_logging(config.log_level)

    try:
        import uvicorn
    except ImportError:
        sys.stderr.write("uvicorn is required to serve the board. Install with: pip install uvicorn\n")
        return 1

    from .server import create_app

    app = create_app(config)
    logger.info("Serving board from {} on {}:{}", config.data_file, config.host, config.port)
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())
    return 0


def _show(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    configure_logging("WARNING")
    tasks = FileTaskRepository(config.data_file).load()

    console = Console()
    table = Table(title=f"Board: {config.data_file}")
    for name in ListName:
        table.add_column(f"{name.value.upper()} ({len(tasks.get(name))})", overflow="fold")

    rows = max((len(t) for _, t in tasks.items()), default=0)
    for i in range(rows):
        cells = []
        for _, column in tasks.items():
            if i < len(column):
                task = column[i]
                cells.append(f"[bold]{task.title}[/bold]" + (f"\n[dim]{task.description}[/dim]" if task.description else ""))
            else:
                cells.append("")
        table.add_row(*cells)

    console.print(table)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="collab-board",
        description="Collaborative task board - authoritative state server",
    )
    parser.add_argument("--config", type=str, default=None, help="YAML config file (default: .collab_board/config.yaml)")
    parser.add_argument("--data-file", type=Path, default=None, help="Board snapshot file (default: data.json)")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the WebSocket board server")
    serve.add_argument("--host", type=str, default=None, help="Bind address (default: 0.0.0.0)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: 5765)")
    serve.add_argument("--log-level", type=str, default=None, choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"])
    serve.set_defaults(func=_serve)

    show = sub.add_parser("show", help="Print the saved board")
    show.set_defaults(func=_show)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
