"""Destination registry service.

Provides persistent storage of webhook destinations with atomic state
updates. Deactivation is a soft delete: inactive destinations stay on disk
for audit but are excluded from fan-out.

The file is shared between the daemon and ``lawcast destinations``
commands running in other processes. Every operation re-reads the file
when its contents differ from what this instance last read or wrote, so the daemon
picks up new destinations and never writes back a stale copy.
"""

import os
import json
import tempfile
import threading
from pathlib import Path
from typing import Iterable, List, Optional
from datetime import datetime, timezone
import structlog
from pydantic import ValidationError

from lawcast.models.destination import Destination, RegistryState, RegistryStats
from lawcast.observability.metrics import DESTINATIONS_DEACTIVATED
from lawcast.utils.exceptions import (
    DestinationNotFoundError,
    DuplicateDestinationError,
    RegistryError,
)

logger = structlog.get_logger()

# Default registry location
DEFAULT_REGISTRY_PATH = Path("data/destinations.json")

class DestinationRegistry:
    """Service for managing registered webhook destinations.

    Provides:
    - Create / read / soft-delete of destinations
    - Batched deactivation for permanently failing endpoints
    - Atomic state persistence (temp file + fsync + rename)

    Safe to call from worker threads; state access is serialized.
    """

    def __init__(self, registry_path: Optional[Path] = None):
        """Initialize the registry service.

        Args:
            registry_path: Path to the registry JSON file.
        """
        self.registry_path = Path(registry_path or DEFAULT_REGISTRY_PATH)
        self._state: Optional[RegistryState] = None
        self._raw: Optional[bytes] = None
        self._lock = threading.RLock()

        logger.info("destination_registry_initialized", path=str(self.registry_path))

    def _ensure_directory(self) -> None:
        """Ensure the registry directory exists with owner-only permissions."""
        self.registry_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            os.chmod(self.registry_path.parent, 0o700)
        except OSError as e:
            logger.warning("registry_dir_chmod_failed", error=str(e))

    def _set_file_permissions(self) -> None:
        """Set registry file permissions to owner-only (0600)."""
        if self.registry_path.exists():
            try:
                os.chmod(self.registry_path, 0o600)
            except OSError as e:
                logger.warning("registry_file_chmod_failed", error=str(e))

    def _read_raw(self) -> Optional[bytes]:
        try:
            return self.registry_path.read_bytes()
        except FileNotFoundError:
            return None

    def load(self) -> RegistryState:
        """Load registry state, re-reading the file if it changed on disk.

        Creates an empty registry if the file doesn't exist. A file that is
        not valid JSON or does not match the schema is backed up and
        replaced with an empty registry.

        Returns:
            Current registry state.
        """
        with self._lock:
            raw = self._read_raw()
            if self._state is not None and raw == self._raw:
                return self._state

            self._ensure_directory()
            self._raw = raw

            if raw is None:
                if self._state is not None:
                    logger.warning(
                        "registry_file_removed", path=str(self.registry_path)
                    )
                else:
                    logger.info("registry_creating_new", path=str(self.registry_path))
                self._state = RegistryState()
                return self._state

            try:
                data = json.loads(raw.decode("utf-8"))

                self._state = RegistryState.model_validate(data)

                logger.info(
                    "registry_loaded",
                    path=str(self.registry_path),
                    destinations=len(self._state.destinations),
                )
                return self._state

            except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
                logger.error(
                    "registry_parse_error",
                    path=str(self.registry_path),
                    error=str(e),
                )
                backup_path = self.registry_path.with_suffix(".json.backup")
                self.registry_path.replace(backup_path)
                logger.warning("registry_backed_up", backup=str(backup_path))

                self._state = RegistryState()
                self._raw = None
                return self._state

    def save(self) -> None:
        """Save registry state to disk atomically.

        Raises:
            RegistryError: If the state could not be written.
        """
        with self._lock:
            if self._state is None:
                logger.warning("registry_save_no_state")
                return

            self._ensure_directory()
            self._state.updated_at = datetime.now(timezone.utc)

            raw = json.dumps(
                self._state.model_dump(mode="json"),
                indent=2,
                default=str,
            ).encode("utf-8")

            try:
                fd, tmp_path = tempfile.mkstemp(
                    dir=self.registry_path.parent,
                    prefix=".destinations_",
                    suffix=".tmp",
                )

                try:
                    with os.fdopen(fd, "wb") as f:
                        f.write(raw)
                        f.flush()
                        os.fsync(f.fileno())

                    os.replace(tmp_path, self.registry_path)
                    self._set_file_permissions()
                    self._raw = raw

                    logger.debug(
                        "registry_saved",
                        path=str(self.registry_path),
                        destinations=len(self._state.destinations),
                    )

                except Exception:
                    if os.path.exists(tmp_path):
                        os.unlink(tmp_path)
                    raise

            except OSError as e:
                logger.error("registry_save_failed", error=str(e))
                raise RegistryError(f"Failed to save registry: {e}") from e

    def create(self, url: str) -> Destination:
        """Register a new destination.

        Args:
            url: Webhook URL (already validated by the caller).

        Returns:
            The newly created, active destination.

        Raises:
            DuplicateDestinationError: If the URL is already registered.
        """
        with self._lock:
            state = self.load()

            if state.find_by_url(url) is not None:
                raise DuplicateDestinationError("Webhook URL already exists")

            destination = Destination(id=state.next_id, url=url)
            state.destinations[destination.id] = destination
            state.next_id += 1
            self.save()

        logger.info("destination_created", destination_id=destination.id)
        return destination

    def get(self, destination_id: int) -> Destination:
        """Get a destination by id (active or not).

        Raises:
            DestinationNotFoundError: If no such destination exists.
        """
        with self._lock:
            destination = self.load().destinations.get(destination_id)
        if destination is None:
            raise DestinationNotFoundError(f"Destination {destination_id} not found")
        return destination

    def list_active(self) -> List[Destination]:
        """Active destinations, ordered by id."""
        with self._lock:
            return self.load().active()

    def list_all(self) -> List[Destination]:
        """All destinations including inactive ones, ordered by id."""
        with self._lock:
            return sorted(self.load().destinations.values(), key=lambda d: d.id)

    def remove(self, destination_id: int) -> None:
        """Soft-delete a single destination.

        Raises:
            DestinationNotFoundError: If no such destination exists.
        """
        with self._lock:
            destination = self.get(destination_id)
            self._deactivate(destination)
            self.save()
        logger.info("destination_removed", destination_id=destination_id)

    def deactivate_many(self, destination_ids: Iterable[int]) -> int:
        """Deactivate several destinations with a single save.

        Unknown ids are ignored. No-op for empty input.

        Returns:
            Number of destinations that changed from active to inactive.
        """
        ids = set(destination_ids)
        if not ids:
            return 0

        with self._lock:
            state = self.load()
            changed = 0
            for destination_id in sorted(ids):
                destination = state.destinations.get(destination_id)
                if destination is None:
                    logger.warning(
                        "deactivate_unknown_destination", destination_id=destination_id
                    )
                    continue
                if destination.is_active:
                    self._deactivate(destination)
                    changed += 1

            if changed:
                self.save()
                DESTINATIONS_DEACTIVATED.inc(changed)

        logger.info(
            "destinations_deactivated",
            requested=len(ids),
            deactivated=changed,
        )
        return changed

    def stats(self) -> RegistryStats:
        """Destination counts by status."""
        with self._lock:
            destinations = list(self.load().destinations.values())
        total = len(destinations)
        active = sum(1 for d in destinations if d.is_active)
        return RegistryStats(total=total, active=active, inactive=total - active)

    @staticmethod
    def _deactivate(destination: Destination) -> None:
        destination.is_active = False
        destination.updated_at = datetime.now(timezone.utc)
