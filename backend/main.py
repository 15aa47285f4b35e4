"""
Command-line entry point.

    python backend/main.py serve       # web UI on TYCOON_HOST:TYCOON_PORT
    python backend/main.py simulate    # headless run, prints a summary
"""

import argparse
import logging
import os

from dotenv import load_dotenv

from config import CONFIG

logger = logging.getLogger(__name__)


def resolve_server_settings() -> tuple[str, int]:
    """Host/port from the environment (.env supported), falling back to CONFIG."""
    load_dotenv()
    host = os.getenv("TYCOON_HOST", CONFIG.server.host)
    port_text = os.getenv("TYCOON_PORT")
    if port_text is None:
        return host, CONFIG.server.port
    try:
        port = int(port_text)
    except ValueError:
        raise ValueError(f"TYCOON_PORT must be an integer, got {port_text!r}")
    return host, port


def serve(reload: bool = False) -> None:
    import uvicorn

    host, port = resolve_server_settings()
    logger.info(f"Serving on http://{host}:{port}")
    uvicorn.run("server:app", host=host, port=port, reload=reload or CONFIG.server.reload)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Business Tycoon Simulator")
    sub = parser.add_subparsers(dest="command")

    serve_parser = sub.add_parser("serve", help="Run the web game (default)")
    serve_parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes")

    sim_parser = sub.add_parser("simulate", help="Run the game headless")
    sim_parser.add_argument("--ticks", type=int, default=300, help="Number of ticks to run")
    sim_parser.add_argument("--no-invest", action="store_true", help="Disable the greedy auto-investor")
    sim_parser.add_argument("--seed", type=int, default=None, help="Seed for stock prices")
    sim_parser.add_argument("--report-every", type=int, default=60, help="Progress interval (ticks)")
    return parser


def main(argv=None) -> None:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)

    if args.command == "simulate":
        from run_game import main as run_headless

        run_headless(
            num_ticks=args.ticks,
            auto_invest=not args.no_invest,
            seed=args.seed,
            report_every=args.report_every,
        )
    else:
        serve(reload=getattr(args, "reload", False))


if __name__ == "__main__":
    main()
