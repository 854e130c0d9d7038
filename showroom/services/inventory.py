"""In-memory vehicle inventory used as the search record collection."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Iterable

from pydantic import TypeAdapter, ValidationError

from showroom.core.errors import ValidationAppError
from showroom.schemas.vehicle import Vehicle
from showroom.services.search_indexer import SearchIndexer

logger = logging.getLogger(__name__)

_VEHICLE_LIST = TypeAdapter(list[Vehicle])


class InventoryStore:
    """Ordered vehicle collection kept in sync with a search index.

    Replacing the collection rebuilds the index, so searches never see an
    index built from an older collection for longer than one call.
    """

    def __init__(self, indexer: SearchIndexer, vehicles: Iterable[Vehicle] = ()) -> None:
        self._indexer = indexer
        self._lock = threading.RLock()
        self._vehicles: tuple[Vehicle, ...] = ()
        self.replace(vehicles)

    @property
    def vehicles(self) -> tuple[Vehicle, ...]:
        """Snapshot of the current collection, in listing order."""
        return self._vehicles

    def __len__(self) -> int:
        return len(self._vehicles)

    def replace(self, vehicles: Iterable[Vehicle]) -> int:
        """Swap in a new collection and rebuild the search index.

        Raises:
            ValidationAppError: If two listings share an id.

        Returns:
            Number of keys in the rebuilt index.
        """

        snapshot = tuple(vehicles)
        seen: set[str] = set()
        for vehicle in snapshot:
            if vehicle.id in seen:
                raise ValidationAppError(
                    code="duplicate_vehicle_id",
                    message=f"Vehicle id '{vehicle.id}' appears more than once",
                    details={"field": "id"},
                )
            seen.add(vehicle.id)

        with self._lock:
            self._vehicles = snapshot
            index_size = self._indexer.build_index(snapshot)

        logger.info("inventory.replaced", extra={"vehicles": len(snapshot), "index_size": index_size})
        return index_size


def load_inventory_file(path: str | Path) -> list[Vehicle]:
    """Load listings from a JSON file holding a list of vehicle objects.

    Raises:
        ValidationAppError: If the file is missing, not JSON, or invalid.
    """

    file_path = Path(path)
    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
        return _VEHICLE_LIST.validate_python(raw)
    except FileNotFoundError as exc:
        raise ValidationAppError(
            code="inventory_seed_missing",
            message=f"Inventory seed file not found: {file_path}",
            details={"hint": "Set APP_INVENTORY_SEED_PATH to an existing JSON file"},
        ) from exc
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ValidationAppError(
            code="inventory_seed_invalid",
            message="Inventory seed file is not a valid list of vehicles",
            details={"context": {"path": str(file_path), "error": str(exc)[:200]}},
        ) from exc
