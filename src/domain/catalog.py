"""
AssetCatalog port: looks up bookable boats and their rate schedules.

Boats are managed by the admin screens, outside this service.  The core
only reads them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.domain.pricing import RateSchedule


@dataclass(frozen=True)
class Asset:
    """A bookable boat."""

    asset_id: str
    name: str
    location_id: str     # home port
    rates: RateSchedule


class AssetCatalog(ABC):

    @abstractmethod
    def get_asset(self, asset_id: str) -> Asset | None:
        """Return the boat, or None if it does not exist."""
        ...

    @abstractmethod
    def store(self, asset: Asset) -> None:
        """Insert or replace a boat. Used for seeding and tests."""
        ...

    def close(self) -> None:
        """Release underlying resources. Default: nothing to release."""
