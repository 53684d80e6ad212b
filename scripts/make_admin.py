from __future__ import annotations

import argparse
from typing import Optional, Sequence

from academy.core.config import settings
from academy.db.session import Database
from academy.models.enums import UserRole
from academy.services.user_service import find_user_by_email, set_role


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Promote an existing user to admin.')
    parser.add_argument('--email', required=True, help='Email of the account to promote')
    parser.add_argument('--database-url', default=settings.DATABASE_URL)
    args = parser.parse_args(argv)

    database = Database(args.database_url)
    try:
        with database.session() as session:
            user = find_user_by_email(session, args.email)
            if not user:
                print(f"no user with email {args.email}")
                return 1
            set_role(session, user, UserRole.ADMIN)
            print(f"{user.email} ({user.id}) is now admin")
    finally:
        database.dispose()
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
