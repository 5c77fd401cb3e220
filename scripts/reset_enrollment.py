"""Reset an enrollment so the user can take the training again.

Deletes the enrollment's progress, certificate, vault record and the
enrollment itself, in one transaction.  Requires DATABASE_URL.

Run with:
    python scripts/reset_enrollment.py <enrollment_id> [--yes]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from uuid import UUID

from app.core.config import SETTINGS
from app.core.errors import CompletionError
from app.core.logging import setup_logging
from app.db import engine
from app.repos.bundle import pg_repos
from app.services.enrollment_admin import reset_enrollment

logger = logging.getLogger("reset_enrollment")


async def _reset(enrollment_id: UUID) -> int:
    async with engine.session_scope() as session:
        repos = pg_repos(session)
        enrollment = await repos.enrollments.get(enrollment_id)
        if enrollment is None:
            print(f"Enrollment not found: {enrollment_id}", file=sys.stderr)
            return 1
        summary = await reset_enrollment(repos, enrollment_id)
    print(
        f"Reset enrollment {enrollment_id} (user={enrollment.user_id}): "
        f"progress={summary.progress_deleted} "
        f"evidence={summary.evidence_deleted} "
        f"certificates={summary.certificates_deleted} "
        f"vault_records={summary.vault_records_deleted}"
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("enrollment_id", type=UUID)
    parser.add_argument("--yes", action="store_true", help="skip the confirmation prompt")
    args = parser.parse_args(argv)

    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    if engine.async_session_factory is None:
        print("DATABASE_URL is not set", file=sys.stderr)
        return 2

    if not args.yes:
        answer = input(f"Delete enrollment {args.enrollment_id} and its records? [y/N] ")
        if answer.strip().lower() != "y":
            print("Aborted")
            return 1

    try:
        return asyncio.run(_reset(args.enrollment_id))
    except CompletionError as e:
        logger.error("Reset failed: %s", e.message)
        return 1


if __name__ == "__main__":
    sys.exit(main())
