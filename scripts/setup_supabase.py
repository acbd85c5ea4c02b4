#!/usr/bin/env python3
"""
Supabase Setup Helper for Launchpad

Verifies the Supabase connection and checks that the tables the
generation jobs read and write exist.

Usage:
    python scripts/setup_supabase.py

Requirements:
    - Set SUPABASE_URL and SUPABASE_SERVICE_KEY environment variables
    - Or create a .env file with these values
"""

import sys
from typing import List

from launchpad.config import config
from launchpad.database.client import get_supabase_admin_client, verify_supabase_connection

REQUIRED_TABLES = [
    "generation_jobs",
    "funnels",
    "profiles",
    "existing_products",
    "lead_magnets",
    "knowledge_chunks",
    "rag_retrieval_logs",
    "email_sequences",
]


def check_supabase_connection() -> bool:
    """Test the Supabase connection."""
    if not config.supabase_configured:
        print("\n❌ Missing Supabase credentials!")
        print("\nSet these environment variables:")
        print("  SUPABASE_URL=https://your-project.supabase.co")
        print("  SUPABASE_SERVICE_KEY=eyJhbGci...")
        return False

    print(f"\n🔗 Connecting to: {config.SUPABASE_URL}")
    if verify_supabase_connection():
        print("✅ Connected to Supabase successfully!")
    else:
        print("⚠️  generation_jobs could not be queried; checking tables")
    return True


def check_tables() -> List[str]:
    """Check which tables exist in Supabase."""
    client = get_supabase_admin_client()

    print("\n📋 Checking required tables:")

    missing = []
    for table in REQUIRED_TABLES:
        try:
            client.table(table).select("*").limit(1).execute()
            print(f"   ✅ {table}")
        except Exception as e:
            if "does not exist" in str(e):
                print(f"   ❌ {table} (missing)")
                missing.append(table)
            else:
                print(f"   ⚠️  {table} (error: {e})")

    return missing


def main() -> int:
    print("=" * 60)
    print("🚀 Launchpad - Supabase Setup Helper")
    print("=" * 60)

    if not check_supabase_connection():
        return 1

    missing = check_tables()
    if missing:
        print(f"\n⚠️  Missing {len(missing)} table(s): {', '.join(missing)}")
        print("Create them in the Supabase SQL Editor, then run this script again.")
        return 1

    print("\n✅ All tables exist!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
