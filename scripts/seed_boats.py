"""
Load boats and their rates into the catalog table.

The input is a JSON list of objects:
    [{"id": "boat-1", "name": "Sea Breeze", "portId": "port-1",
      "hourlyRate": "50", "halfDayRate": "300", "fullDayRate": "500"}]

Usage:
    python scripts/seed_boats.py boats.json
"""

import json
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.adapters.sqlite_asset_catalog import SqliteAssetCatalog
from src.domain.catalog import Asset
from src.domain.pricing import RateSchedule

DB_PATH = os.environ.get("DB_PATH", "data/booking.db")

if len(sys.argv) != 2:
    print(__doc__)
    sys.exit(1)

with open(sys.argv[1]) as f:
    boats = json.load(f)

if os.path.dirname(DB_PATH):
    os.makedirs(os.path.dirname(DB_PATH), exist_ok=True)
catalog = SqliteAssetCatalog(DB_PATH)

for b in boats:
    asset = Asset(
        asset_id=b["id"],
        name=b["name"],
        location_id=b["portId"],
        rates=RateSchedule(
            hourly_rate=b["hourlyRate"],
            half_day_rate=b["halfDayRate"],
            full_day_rate=b["fullDayRate"],
        ),
    )
    catalog.store(asset)
    print(f"  {asset.asset_id} ({asset.name}) @ {asset.location_id}")

catalog.close()
print(f"\nStored {len(boats)} boats in {DB_PATH}")
