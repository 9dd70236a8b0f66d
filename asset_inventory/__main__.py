# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""
Allow running the inventory tool as a Python module.

Usage:
    python -m asset_inventory collect --regions us-east-1,eu-west-1
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
