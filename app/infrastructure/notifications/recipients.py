"""Recipient resolution from per-user preference flags.

The preference store is owned by the surrounding application; this module
only reads it through the PreferenceStore interface.
"""

import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional

import structlog
from pydantic import ValidationError

from infrastructure.notifications import phone
from infrastructure.notifications.exceptions import PreferenceLookupError
from infrastructure.notifications.models import PreferenceSubscriber, Recipient

logger = structlog.get_logger()


class PreferenceStore(ABC):
    """Read access to per-user notification preferences.

    Example Implementation:
        class SqlPreferenceStore(PreferenceStore):

            def find_users_with_flag(self, field_name):
                rows = session.execute(
                    select(NotificationConfig).where(
                        getattr(NotificationConfig, field_name).is_(True)
                    )
                )
                return [PreferenceSubscriber(...) for row in rows]
    """

    @abstractmethod
    def find_users_with_flag(self, field_name: str) -> List[PreferenceSubscriber]:
        """Return active users whose boolean flag ``field_name`` is true.

        Args:
            field_name: Preference flag, e.g. ``stage_drafting``

        Returns:
            Subscribers with their stored (un-normalized) phone numbers
        """
        pass


class InMemoryPreferenceStore(PreferenceStore):
    """Dictionary-backed preference store for local development and tests.

    Example:
        store = InMemoryPreferenceStore()
        store.add_user("u1", flags={"meeting"}, primary_phone="0400 123 456")
        store.find_users_with_flag("meeting")
    """

    def __init__(self):
        self._users: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def add_user(
        self,
        user_id: str,
        flags: Iterable[str] = (),
        primary_phone: Optional[str] = None,
        secondary_phone: Optional[str] = None,
        active: bool = True,
    ) -> None:
        """Add or replace a user and the flags they have enabled."""
        with self._lock:
            self._users[str(user_id)] = {
                "flags": frozenset(flags),
                "subscriber": PreferenceSubscriber(
                    user_id=user_id,
                    active=active,
                    primary_phone=primary_phone,
                    secondary_phone=secondary_phone,
                ),
            }

    def set_flag(self, user_id: str, field_name: str, enabled: bool) -> None:
        """Enable or disable one flag for an existing user."""
        with self._lock:
            entry = self._users[str(user_id)]
            flags = set(entry["flags"])
            if enabled:
                flags.add(field_name)
            else:
                flags.discard(field_name)
            entry["flags"] = frozenset(flags)

    def find_users_with_flag(self, field_name: str) -> List[PreferenceSubscriber]:
        with self._lock:
            entries = list(self._users.values())
        return [
            entry["subscriber"]
            for entry in entries
            if field_name in entry["flags"] and entry["subscriber"].active
        ]


class RecipientResolver:
    """Expands subscribers of a preference flag into channel recipients.

    Each active subscriber yields their normalized primary phone, plus
    their secondary phone when it normalizes to a different address.
    Subscribers without any usable phone are skipped.

    Attributes:
        store: PreferenceStore to query
        default_region: Region used to normalize local phone numbers
    """

    def __init__(self, store: PreferenceStore, default_region: str = phone.DEFAULT_REGION):
        self.store = store
        self.default_region = default_region

    def resolve(self, gating_field: Optional[str]) -> List[Recipient]:
        """Resolve recipients for a gating flag.

        Args:
            gating_field: Preference flag; None or empty returns [] without
                querying the store

        Returns:
            Recipients, at most one per distinct address per user

        Raises:
            PreferenceLookupError: the store query failed
        """
        if not gating_field:
            return []

        try:
            subscribers = list(self.store.find_users_with_flag(gating_field) or [])
        except Exception as e:  # pylint: disable=broad-except
            logger.error(
                "preference_lookup_failed",
                gating_field=gating_field,
                error=str(e),
                exc_info=True,
            )
            raise PreferenceLookupError(
                f"Could not load subscribers for {gating_field}: {e}"
            ) from e

        recipients: List[Recipient] = []
        for raw in subscribers:
            subscriber = self._coerce(raw, gating_field)
            if subscriber is None or not subscriber.active:
                continue
            recipients.extend(self._expand(subscriber))

        logger.debug(
            "recipients_resolved",
            gating_field=gating_field,
            subscriber_count=len(subscribers),
            recipient_count=len(recipients),
        )
        return recipients

    def _coerce(self, raw: Any, gating_field: str) -> Optional[PreferenceSubscriber]:
        if isinstance(raw, PreferenceSubscriber):
            return raw
        if isinstance(raw, Mapping):
            try:
                return PreferenceSubscriber.model_validate(raw)
            except ValidationError as e:
                logger.warning(
                    "invalid_subscriber_skipped",
                    gating_field=gating_field,
                    error=str(e),
                )
                return None
        logger.warning(
            "invalid_subscriber_skipped",
            gating_field=gating_field,
            subscriber_type=type(raw).__name__,
        )
        return None

    def _expand(self, subscriber: PreferenceSubscriber) -> List[Recipient]:
        primary = phone.normalize(subscriber.primary_phone, self.default_region)
        secondary = phone.normalize(subscriber.secondary_phone, self.default_region)

        recipients = []
        if primary:
            recipients.append(Recipient(user_id=subscriber.user_id, address=primary))
        if secondary and secondary != primary:
            recipients.append(
                Recipient(
                    user_id=subscriber.user_id, address=secondary, is_secondary=True
                )
            )
        if not recipients:
            logger.info("subscriber_without_phone", user_id=subscriber.user_id)
        return recipients
