#!/usr/bin/env python3
"""
Issue a development bearer token for a patient or doctor.

Production tokens come from the identity provider; this only helps when
exercising the API locally.

Usage:
    python scripts/issue_dev_token.py patient <uuid> [minutes]
    python scripts/issue_dev_token.py doctor <uuid> [minutes]
"""

import sys
from datetime import timedelta
from uuid import UUID

from ubs_booking.config import settings
from ubs_booking.core.security import create_access_token


def main() -> None:
    """Print a signed token for the given role and id."""
    if len(sys.argv) < 3 or sys.argv[1] not in ("patient", "doctor"):
        print(__doc__)
        sys.exit(1)

    if settings.is_production:
        print("✗ Refusing to issue development tokens in production", file=sys.stderr)
        sys.exit(1)

    role, principal_id = sys.argv[1], UUID(sys.argv[2])
    minutes = int(sys.argv[3]) if len(sys.argv) > 3 else settings.access_token_expire_minutes

    token = create_access_token(
        {"sub": str(principal_id), "role": role},
        expires_delta=timedelta(minutes=minutes),
    )
    print(token)


if __name__ == "__main__":
    main()
