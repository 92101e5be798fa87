#!/usr/bin/env python3
"""
Database reset script for the Clinic Scheduler.

This script clears all data and reinitializes a local SQLite database with
empty tables. Use this to get a clean database state for manual testing.
"""

import sys
import os
from pathlib import Path

# Add backend/src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'backend', 'src'))

from sqlalchemy import create_engine, inspect
from core.database import Base
from core.config import DATABASE_URL

# Import all models to ensure they're registered with Base
import models  # noqa: F401


EXPECTED_TABLES = [
    'patients',
    'patient_notes',
    'schedule_settings',
    'attendances',
    'treatment_records',
    'treatment_sessions',
    'treatment_session_records',
]


def reset_database():
    """Reset the database by deleting the SQLite file and recreating all tables."""

    print("🔄 Resetting Clinic Scheduler database...")
    print(f"Database URL: {DATABASE_URL}")

    # Confirm action (in case someone runs this accidentally)
    if not DATABASE_URL.startswith("sqlite:///"):
        print("❌ ERROR: This script only works with a local SQLite database!")
        print(f"Current database: {DATABASE_URL}")
        return

    try:
        db_path = Path(DATABASE_URL.replace("sqlite:///", "", 1))
        if db_path.exists():
            print("🗑️  Deleting existing database file...")
            db_path.unlink()
            print("✅ Database file deleted")

        print("🏗️  Creating fresh database with tables...")
        fresh_engine = create_engine(DATABASE_URL, echo=False)
        Base.metadata.create_all(bind=fresh_engine)
        table_names = inspect(fresh_engine).get_table_names()
        fresh_engine.dispose()

        print("📋 Created tables:")
        for table in EXPECTED_TABLES:
            if table in table_names:
                print(f"   ✅ {table}")
            else:
                print(f"   ❌ {table} (missing)")

        if all(table in table_names for table in EXPECTED_TABLES):
            print("🎉 Database reset complete! All tables created successfully.")
        else:
            print("⚠️  Warning: Some tables may be missing")

    except Exception as e:
        print(f"❌ Error resetting database: {e}")
        raise


def show_usage():
    """Show usage information."""
    print("Clinic Scheduler Database Reset Script")
    print("=" * 40)
    print()
    print("This script will:")
    print("1. Delete the SQLite database file")
    print("2. Recreate all tables with empty data")
    print()
    print("Usage:")
    print("  DATABASE_URL=sqlite:///./clinic.db python reset_database.py")
    print()
    print("Note: Only works with SQLite databases")


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] in ['--help', '-h']:
        show_usage()
    else:
        reset_database()
