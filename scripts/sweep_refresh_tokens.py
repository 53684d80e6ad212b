from __future__ import annotations

import argparse
from typing import Optional, Sequence

from academy.core.config import settings
from academy.db.session import Database
from academy.services.refresh_token_service import sweep_expired


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Delete expired refresh tokens from the ledger.')
    parser.add_argument('--database-url', default=settings.DATABASE_URL, help='Database to sweep')
    args = parser.parse_args(argv)

    database = Database(args.database_url)
    try:
        with database.session() as session:
            removed = sweep_expired(session)
    finally:
        database.dispose()
    print(f"removed {removed} expired refresh token(s)")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
