"""Run or author Alembic migrations for the appointment database."""

import argparse
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


def alembic_config() -> Config:
    """Alembic config rooted at the project directory."""
    config = Config(str(ALEMBIC_INI))
    config.set_main_option("script_location", str(ALEMBIC_INI.parent / "alembic"))
    return config


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    subcommands = parser.add_subparsers(dest="command")

    upgrade = subcommands.add_parser("upgrade", help="Upgrade to a revision (default: head)")
    upgrade.add_argument("revision", nargs="?", default="head")

    downgrade = subcommands.add_parser("downgrade", help="Downgrade to a revision")
    downgrade.add_argument("revision")

    subcommands.add_parser("current", help="Show the applied revision")

    create = subcommands.add_parser("create", help="Autogenerate a new revision")
    create.add_argument("message", nargs="+")

    args = parser.parse_args()
    config = alembic_config()

    try:
        if args.command == "downgrade":
            command.downgrade(config, args.revision)
        elif args.command == "current":
            command.current(config, verbose=True)
        elif args.command == "create":
            command.revision(config, message=" ".join(args.message), autogenerate=True)
        else:
            command.upgrade(config, getattr(args, "revision", "head"))
    except Exception as e:
        print(f"✗ Migration command failed: {e}", file=sys.stderr)
        sys.exit(1)

    print("✓ Done")


if __name__ == "__main__":
    main()
