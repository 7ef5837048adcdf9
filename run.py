#!/usr/bin/env python3
"""
Rupee Ledger Entry Point

Starts the interactive banking console. The ledger is loaded from the
snapshot file, or seeded with demo accounts 101 and 102.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from rupee_ledger.cli import main


if __name__ == "__main__":
    print("🏦 Starting Rupee Ledger...")
    print("💰 All amounts use Decimal precision")
    print()

    try:
        sys.exit(main())
    except Exception as e:
        print(f"❌ Error: {e}")
        sys.exit(1)
