#!/usr/bin/env python
"""Seed the action type vocabulary.

Ensures the six lifecycle action kinds (view, edit, process, unprocess,
trash, restore) exist. Additional kinds can be registered by passing
name=description pairs. Safe to run repeatedly.

Usage:
    python backend/scripts/seed_action_types.py
    python backend/scripts/seed_action_types.py "export=User exported a document"

Environment Variables:
    DATABASE_URL: Database connection string
"""

import sys

from insuredocs.audit.action_types import ensure_action_types, register_action_type
from insuredocs.database import get_db_session


def parse_custom_kinds(args):
    """Parse name=description arguments into (name, description) pairs."""
    kinds = []
    for arg in args:
        name, _, description = arg.partition("=")
        if not name.strip():
            raise ValueError(f"Invalid action type argument: {arg!r}")
        kinds.append((name, description.strip() or None))
    return kinds


def main(argv=None):
    """Seed lifecycle kinds plus any custom kinds given on the command line."""
    try:
        custom_kinds = parse_custom_kinds(sys.argv[1:] if argv is None else argv)
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    with get_db_session() as session:
        seeded = ensure_action_types(session)
        for name, description in custom_kinds:
            seeded.append(register_action_type(session, name, description))

        print(f"✓ {len(seeded)} action types present:")
        for action_type in seeded:
            print(f"  {action_type.id:>3}  {action_type.name}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
