"""
Every geofence mutation goes through GeofenceLifecycleController.

Responsibilities:
- Refuse mutations from boundary viewers before any network call.
- Validate create/update input locally and report all field errors at once.
- Send exactly one request per logical submission; ignore duplicates while
  the same submission is still in flight.
- On success, re-fetch the collection through the injected refresh coroutine
  instead of patching local state, so server-derived fields (id, timestamps,
  center point) always come from the backend.
- Report remote failures once through the injected notifier, then re-raise.
- Keep the companion selection and the two-step delete confirmation.

No HA imports: the controller only sees an API client, an actor, a refresh
coroutine and a notifier callback.
"""
from __future__ import annotations

import contextlib
import logging
from typing import Any, Awaitable, Callable, Iterator, Mapping, Protocol

from .const import MIN_POLYGON_POINTS, READ_ONLY_NOTICE
from .errors import AuthorizationError, InsufficientPointsError, PersistenceError, ValidationError
from .models import Actor, Geofence, GeofenceCreate, GeofencePatch
from .point_collector import CaptureSession, CaptureState
from .polygon_builder import build_polygon, validate_polygon

_LOGGER = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]
RefreshCallback = Callable[[], Awaitable[Any]]


class GeofencePersistence(Protocol):
    """What the controller needs from the backend client."""

    async def create_geofence(self, payload: dict) -> Geofence | None: ...

    async def update_geofence(self, geofence_id: int, payload: dict) -> Geofence | None: ...

    async def delete_geofence(self, geofence_id: int) -> None: ...


def _ignore(message: str, title: str) -> None:
    return None


class GeofenceLifecycleController:
    """Role-checked create/update/delete against the persistence collaborator."""

    def __init__(
        self,
        api: GeofencePersistence,
        actor: Actor,
        refresh: RefreshCallback,
        notify: Notifier | None = None,
    ) -> None:
        self._api = api
        self._actor = actor
        self._refresh = refresh
        self._notify = notify or _ignore
        self._in_flight: set[str] = set()
        self._pending_delete: int | None = None
        self._selected: int | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def actor(self) -> Actor:
        return self._actor

    @property
    def can_mutate(self) -> bool:
        return self._actor.can_mutate

    @property
    def read_only_notice(self) -> str | None:
        """Explanation shown instead of edit controls for viewers."""
        return None if self.can_mutate else READ_ONLY_NOTICE

    @property
    def selected_id(self) -> int | None:
        return self._selected

    @property
    def pending_delete_id(self) -> int | None:
        return self._pending_delete

    def is_submitting(self, key: str) -> bool:
        return key in self._in_flight

    def select(self, geofence_id: int | None) -> None:
        self._selected = geofence_id

    def toggle_selection(self, geofence_id: int) -> int | None:
        """Select geofence_id, or clear the selection if it is already selected."""
        self._selected = None if self._selected == geofence_id else geofence_id
        return self._selected

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _require_author(self, action: str) -> None:
        if self._actor.can_mutate:
            return
        message = f"Only boundary authors can {action} geofences"
        _LOGGER.warning("%s (user %s)", message, self._actor.username)
        self._notify(message, "Not permitted")
        raise AuthorizationError(message)

    @contextlib.contextmanager
    def _submitting(self, key: str) -> Iterator[bool]:
        """Yield False if key is already in flight, otherwise hold it for the block."""
        if key in self._in_flight:
            _LOGGER.debug("Ignoring duplicate submission %s", key)
            yield False
            return
        self._in_flight.add(key)
        try:
            yield True
        finally:
            self._in_flight.discard(key)

    def resolve_organization(self, requested: int | None) -> int:
        """
        A boundary author with an organization always creates in that
        organization. Anyone else must name one explicitly.
        """
        own = self._actor.organization_id
        if own is not None:
            if requested is not None and requested != own:
                raise ValidationError(
                    {"organization": "Geofences can only be created in your own organization"}
                )
            return own
        if requested is None:
            raise ValidationError({"organization": "Please select an organization"})
        return requested

    def _field_errors(self, name: str | None, organization_id: int | None) -> tuple[dict[str, str], int | None]:
        errors: dict[str, str] = {}
        if not name or not name.strip():
            errors["name"] = "Geofence name is required"
        resolved = None
        try:
            resolved = self.resolve_organization(organization_id)
        except ValidationError as exc:
            errors.update(exc.field_errors)
        return errors, resolved

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, request: GeofenceCreate) -> Geofence | None:
        """
        Create a geofence (always active) and refresh the collection.

        Returns the geofence echoed by the backend, or None when an identical
        submission is already in flight.
        """
        self._require_author("create")

        errors, organization_id = self._field_errors(request.name, request.organization_id)
        try:
            validate_polygon(request.polygon)
        except ValidationError as exc:
            errors.update(exc.field_errors)
        if errors:
            raise ValidationError(errors)

        payload = request.to_payload(organization_id)
        with self._submitting("create") as acquired:
            if not acquired:
                return None
            try:
                created = await self._api.create_geofence(payload)
            except PersistenceError as exc:
                self._notify(exc.message or "Failed to create geofence", "Geofence not created")
                raise
            _LOGGER.info("Geofence %s created in organization %s", request.name, organization_id)
            self._notify("Geofence created successfully", "Geofence created")
            await self._refresh()
        return created

    async def create_from_capture(
        self,
        session: CaptureSession,
        name: str,
        description: str | None = None,
        organization_id: int | None = None,
    ) -> Geofence | None:
        """
        Create a geofence from a confirmed capture session.

        The session is marked submitted only after the backend accepted the
        geofence; on any failure the captured points stay as they are.
        """
        self._require_author("create")

        errors, _ = self._field_errors(name, organization_id)
        points = session.points
        if len(points) < MIN_POLYGON_POINTS:
            errors.update(InsufficientPointsError(len(points)).field_errors)
        elif session.state is not CaptureState.READY:
            errors["polygon"] = "Confirm the boundary before creating the geofence"
        if errors:
            raise ValidationError(errors)

        if self.is_submitting("create"):
            _LOGGER.debug("Ignoring duplicate submission create")
            return None

        request = GeofenceCreate(
            name=name,
            description=description,
            organization_id=organization_id,
            polygon=build_polygon(points),
        )
        created = await self.create(request)
        # The drawing may have been cleared while the request was in flight
        if session.state is CaptureState.READY:
            session.mark_submitted()
        return created

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update(self, geofence_id: int, patch: GeofencePatch | Mapping[str, Any]) -> Geofence | None:
        """
        Change name, description and/or active of an existing geofence.

        Geometry is not part of GeofencePatch; a mapping that carries it raises
        TypeError.
        """
        self._require_author("edit")

        if not isinstance(patch, GeofencePatch):
            patch = GeofencePatch.from_mapping(patch)
        if patch.is_empty():
            raise ValidationError({"patch": "Nothing to update"})
        if patch.name is not None and not patch.name.strip():
            raise ValidationError({"name": "Geofence name is required"})

        with self._submitting(f"update:{geofence_id}") as acquired:
            if not acquired:
                return None
            try:
                updated = await self._api.update_geofence(geofence_id, patch.to_payload())
            except PersistenceError as exc:
                self._notify(exc.message or "Failed to update geofence", "Geofence not updated")
                raise
            _LOGGER.info("Geofence %s updated: %s", geofence_id, patch.to_payload())
            self._notify("Geofence updated successfully", "Geofence updated")
            await self._refresh()
        return updated

    # ------------------------------------------------------------------
    # Delete (two steps)
    # ------------------------------------------------------------------

    def request_delete(self, geofence_id: int) -> int:
        """Open the delete confirmation for geofence_id. Authors only."""
        self._require_author("delete")
        self._pending_delete = geofence_id
        return geofence_id

    def cancel_delete(self) -> None:
        self._pending_delete = None

    async def confirm_delete(self, geofence_id: int) -> bool:
        """
        Delete the geofence whose confirmation is open.

        Returns False when the same delete is already in flight. A failed
        delete leaves the confirmation open.
        """
        self._require_author("delete")
        if self._pending_delete != geofence_id:
            raise ValidationError(
                {"geofence_id": f"Deletion of geofence {geofence_id} was not requested"}
            )

        with self._submitting(f"delete:{geofence_id}") as acquired:
            if not acquired:
                return False
            try:
                await self._api.delete_geofence(geofence_id)
            except PersistenceError as exc:
                self._notify(exc.message or "Failed to delete geofence", "Geofence not deleted")
                raise
            _LOGGER.info("Geofence %s deleted", geofence_id)
            if self._selected == geofence_id:
                self._selected = None
            self._pending_delete = None
            self._notify("Geofence deleted successfully", "Geofence deleted")
            await self._refresh()
        return True
