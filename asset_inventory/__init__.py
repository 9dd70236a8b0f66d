# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""AWS Asset Inventory.

Collects every resource AWS Config knows about across a set of regions
into a single inventory snapshot.
"""

__version__ = "0.1.0"
