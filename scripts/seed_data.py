#!/usr/bin/env python3
"""
Seed a database with the blind box catalog.

Creates the tables if needed, replaces the catalog with the products from
the catalog YAML, installs the probability config (persisted weights win
unless --reset-config is given) and optionally clears the backpack.

Usage:
    python3 scripts/seed_data.py --db sqlite:///blindbox.db
    python3 scripts/seed_data.py --db postgresql://... --catalog my_catalog.yaml --reset-config
"""

import argparse
import sys
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def main() -> int:
    from blindbox_config import AppSettings, get_catalog
    from blindbox_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
    from blindbox_kernel.exceptions import BlindBoxError
    from blindbox_kernel.logging_config import configure_logging
    from blindbox_services.wiring import bootstrap, build_sql_system

    settings = AppSettings.from_env()
    parser = argparse.ArgumentParser(
        description="Seed the blind box catalog into a database.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--db", default=settings.database_url,
        help="SQLAlchemy database URL (default: $BLINDBOX_DATABASE_URL)",
    )
    parser.add_argument(
        "--catalog", default=str(settings.catalog_path),
        help="Catalog YAML file (default: bundled catalog)",
    )
    parser.add_argument(
        "--keep-backpack", action="store_true",
        help="Do not clear existing backpack entries",
    )
    parser.add_argument(
        "--reset-config", action="store_true",
        help="Overwrite persisted probabilities with the catalog defaults",
    )
    args = parser.parse_args()

    if not args.db:
        print("  No database URL: pass --db or set BLINDBOX_DATABASE_URL", file=sys.stderr)
        return 2

    configure_logging(level=settings.log_level)

    try:
        catalog = get_catalog(args.catalog)
        init_engine_from_url(args.db)
        create_tables()
        system = build_sql_system(
            get_session_factory(), default_probabilities=catalog.probabilities
        )
        if args.reset_config:
            system.config_store.set_config(catalog.probabilities)
        report = bootstrap(system, catalog.products, reset_backpack=not args.keep_backpack)
    except BlindBoxError as exc:
        print(f"  Seeding failed [{exc.code}]: {exc}", file=sys.stderr)
        return 1

    print()
    print(f"  Catalog:       {catalog.name} v{catalog.version} ({catalog.checksum[:12]})")
    print(f"  Products:      {report.product_count}")
    weights = report.probabilities
    print(f"  Probabilities: common={weights.common} rare={weights.rare} secret={weights.secret}")
    print(f"  Cleared:       {report.backpack_entries_cleared} backpack entries")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
