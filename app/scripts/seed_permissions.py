"""
Seed Role Permissions Script
This script writes the default role permission matrix into the system_settings table.
Can be run manually or as part of a deployment; an existing row is kept unless --overwrite is given.
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.config.permissions_config import get_permission_matrix
from app.database.supabase_client import get_service_supabase
from app.modules.permissions.service import PermissionSettingsService
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed_role_permissions(supabase: Client, overwrite: bool = False) -> bool:
    """Seed role permissions from config. Returns True when the row was written."""
    record = get_permission_matrix()
    logger.info(f"Seeding {record['key']}...")

    existing = supabase.table("system_settings")\
        .select("id")\
        .eq("key", record["key"])\
        .execute()

    if existing.data and not overwrite:
        logger.info(f"{record['key']} already present, skipping (use --overwrite to replace)")
        return False

    PermissionSettingsService(supabase).write_matrix(record["value"])
    roles = record["value"]
    logger.info(
        f"Seeded {record['key']}: {len(roles)} roles, "
        f"{sum(len(permissions) for permissions in roles.values())} permission records"
    )
    return True


def main(argv=None):
    """Main function to seed role permissions"""
    parser = argparse.ArgumentParser(description="Seed the default role permission matrix")
    parser.add_argument("--overwrite", action="store_true", help="replace an existing matrix")
    args = parser.parse_args(argv)

    try:
        supabase = get_service_supabase()

        logger.info("Starting role permissions seeding...")
        seed_role_permissions(supabase, overwrite=args.overwrite)
        logger.info("Seeding completed successfully!")

    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
