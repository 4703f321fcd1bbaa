#!/usr/bin/env python3
"""
Backfill pending commissions for activation codes sold before
commissions were recorded at checkout.

Safe to re-run: codes whose session already has a commission are skipped.

Usage:
    python scripts/backfill_activation_commissions.py
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from maxpulse_backend.core.logging import get_logger
from maxpulse_backend.db.session import SessionLocal
from maxpulse_backend.services.activation_code_service import ActivationCodeService

logger = get_logger(__name__)


def main() -> int:
    print("\n" + "=" * 60)
    print("🔄 ACTIVATION CODE COMMISSION BACKFILL")
    print("=" * 60 + "\n")

    db = SessionLocal()
    try:
        summary = ActivationCodeService.backfill_activation_commissions(db)
    except Exception as e:
        logger.error(f"❌ Backfill aborted: {e}", exc_info=True)
        print(f"❌ Backfill aborted: {e}")
        return 1
    finally:
        db.close()

    print(f"📋 Activation codes:  {summary['total']}")
    print(f"✅ Created:           {summary['created']}")
    print(f"⏭️  Skipped:           {summary['skipped']}")
    print(f"❌ Errors:            {summary['errors']}")
    print("\n" + "=" * 60 + "\n")

    return 1 if summary["errors"] else 0


if __name__ == "__main__":
    sys.exit(main())
