"""Grant or revoke admin rights on an existing account.

Usage:
    python scripts/create_admin.py owner@example.com
    python scripts/create_admin.py owner@example.com --revoke
"""

import argparse
import asyncio
import sys

from partsmarket.core.logging import configure_logging
from partsmarket.db.session import async_session_factory, engine
from partsmarket.services.auth_service import AuthService


async def set_role(email: str, make_admin: bool) -> bool:
    action = "Granting" if make_admin else "Revoking"
    print(f"\n{'='*60}")
    print(f"  {action} admin rights")
    print(f"{'='*60}\n")

    async with async_session_factory() as session:
        service = AuthService(session)
        user = await service.get_user_by_email(email)
        if user is None:
            print(f"  ! No account registered with {email}\n")
            found = False
        else:
            user = await service.set_admin(user.id, make_admin)
            print(f"  {user.username} <{user.email}> is now {user.role}")
            print("  Tokens issued before this change no longer work\n")
            found = True

    await engine.dispose()
    return found


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("email", help="email the account registered with")
    parser.add_argument("--revoke", action="store_true", help="demote the account back to seller")
    args = parser.parse_args()

    configure_logging()
    return 0 if asyncio.run(set_role(args.email, not args.revoke)) else 1


if __name__ == "__main__":
    sys.exit(main())
