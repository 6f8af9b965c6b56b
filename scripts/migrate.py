"""Script to run database migrations."""

import sys

from alembic import command
from alembic.config import Config


def run_migrations(target: str = "head") -> None:
    """Upgrade the database to ``target``."""
    alembic_cfg = Config("alembic.ini")

    try:
        print(f"Running database migrations to {target}...")
        command.upgrade(alembic_cfg, target)
        print("✓ Migrations completed successfully!")
    except Exception as e:
        print(f"✗ Migration failed: {e}", file=sys.stderr)
        sys.exit(1)


def rollback(target: str = "-1") -> None:
    """Downgrade the database to ``target``."""
    alembic_cfg = Config("alembic.ini")

    try:
        print(f"Rolling back database to {target}...")
        command.downgrade(alembic_cfg, target)
        print("✓ Rollback completed successfully!")
    except Exception as e:
        print(f"✗ Rollback failed: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    if len(sys.argv) == 1:
        run_migrations()
    elif sys.argv[1] == "upgrade":
        run_migrations(sys.argv[2] if len(sys.argv) > 2 else "head")
    elif sys.argv[1] == "downgrade":
        rollback(sys.argv[2] if len(sys.argv) > 2 else "-1")
    else:
        print("Usage: python scripts/migrate.py [upgrade [rev] | downgrade [rev]]")
