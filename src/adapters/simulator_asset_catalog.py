"""
In-memory AssetCatalog for testing. No database required.
"""

from src.domain.catalog import Asset, AssetCatalog


class InMemoryAssetCatalog(AssetCatalog):

    def __init__(self, assets: list[Asset] | None = None):
        self._store: dict[str, Asset] = {a.asset_id: a for a in assets or []}

    def get_asset(self, asset_id: str) -> Asset | None:
        return self._store.get(asset_id)

    def store(self, asset: Asset) -> None:
        self._store[asset.asset_id] = asset

    def remove(self, asset_id: str) -> None:
        """Test helper: simulate an admin deleting a boat."""
        self._store.pop(asset_id, None)
