#!/usr/bin/env python3
"""
Run the blind box HTTP API with Flask's built-in server.

Settings come from the BLINDBOX_* environment variables (see
blindbox_config/settings.py); --db and --catalog override them.

Usage:
    python3 scripts/serve.py
    python3 scripts/serve.py --db sqlite:///blindbox.db --port 3000
"""

import argparse
import dataclasses
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def main() -> int:
    from blindbox_api import create_app
    from blindbox_config import AppSettings
    from blindbox_kernel.logging_config import configure_logging

    parser = argparse.ArgumentParser(description="Serve the blind box API.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=3000)
    parser.add_argument("--db", help="SQLAlchemy database URL (default: in-memory stores)")
    parser.add_argument("--catalog", help="Catalog YAML file")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    settings = AppSettings.from_env()
    overrides = {}
    if args.db:
        overrides["database_url"] = args.db
    if args.catalog:
        overrides["catalog_path"] = Path(args.catalog)
    settings = dataclasses.replace(settings, **overrides)

    configure_logging(level=settings.log_level)
    app = create_app(settings=settings)
    app.run(host=args.host, port=args.port, debug=args.debug, threaded=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
