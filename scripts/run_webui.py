"""Run the JSON web API over a live build state."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from talent_planner.bootstrap import load_catalog
from talent_planner.webui.server import serve


def main() -> None:
    parser = argparse.ArgumentParser(description="Run talent planner web API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=4173)
    parser.add_argument("--catalog", type=Path, help="Catalog JSON (default: $TALENT_CATALOG or bundled)")
    parser.add_argument("--link", help="Share link query (?token) to load at startup")
    parser.add_argument("--verbose", action="store_true", help="Log requests and state changes")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    serve(load_catalog(args.catalog), host=args.host, port=args.port, initial_query=args.link)


if __name__ == "__main__":
    main()
