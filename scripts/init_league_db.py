#!/usr/bin/env python3
"""
Create the league database and bring its state to a usable baseline.

Creates any missing tables, then runs the orchestrator's sanitize hook:
one league state row, a seeded achievement if the catalog is empty, and
no stale tournament binding. Safe to run repeatedly.

Usage:
    python scripts/init_league_db.py
    python scripts/init_league_db.py --database-url sqlite:///other.db
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy.orm import sessionmaker

from leaguetracker.config import settings
from leaguetracker.db.session import get_engine, init_db
from leaguetracker.league import LeagueOrchestrator

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Create and sanitize the league database")
    parser.add_argument(
        "--database-url",
        default=None,
        help=f"SQLAlchemy URL (default: {settings.database_url})",
    )
    args = parser.parse_args()

    engine = init_db(get_engine(args.database_url))
    logger.info("Tables ready at %s", engine.url.render_as_string(hide_password=True))

    session = sessionmaker(bind=engine)()
    try:
        league = LeagueOrchestrator(session)
        state = league.validate_and_sanitize_state()
        print(
            f"League ready: {len(league.players())} players, "
            f"{len(league.achievements())} achievements, "
            f"{len(league.tournaments())} tournaments, screen={state.current_screen}"
        )
    finally:
        session.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
