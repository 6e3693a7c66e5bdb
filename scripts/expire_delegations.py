"""Run one delegation expiry sweep: active delegations past valid_until become expired.

Usage:
    python -m scripts.expire_delegations
Safe to run repeatedly or from several schedulers at once; a second run
over the same state expires nothing.
"""

import asyncio
import sys

import approvals.infrastructure.persistence.database as database
from approvals.infrastructure.cache.memory_cache import MemoryCache
from approvals.infrastructure.services import DelegationAuthority, LocationHierarchy
from approvals.shared.telemetry.logging import setup_logging
from approvals.shared.utils.datetime import utc_now


async def main() -> None:
    """Expire overdue delegations in a single transaction and print the count."""
    setup_logging()
    factory = database.get_session_factory()
    now = utc_now()
    try:
        async with factory.begin() as session:
            # The sweep never reads the location tree; a process-local cache is enough.
            authority = DelegationAuthority(session, LocationHierarchy(session, MemoryCache()))
            expired = await authority.expire_delegations(now)
    finally:
        await database.dispose_engine()
    print(f"Done. Expired {expired} delegation(s) as of {now.isoformat()}")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception as exc:
        print(f"Expiry sweep failed: {exc}", file=sys.stderr)
        sys.exit(1)
