from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any, Callable, Optional

from ..common.validators import require_bool, require_hhmm, require_non_empty
from ..core.enums import Capability, SubscriptionState, WorkMode, WriteStatus
from ..core.exceptions import ConfigUnavailable, DomainError, PermissionDenied, ValidationError, WriteConflict
from ..users.model import Actor
from ..users.permissions import require_capability
from .model import SCHEDULE_FIELDS, CompanyWorkConfig
from .store import ConfigStore
from .subscription import ResilientSubscription

logger = logging.getLogger(__name__)

ModeListener = Callable[[WorkMode, WorkMode, CompanyWorkConfig], None]

# Global mode state machine. ENDED only leaves through start_new_work_day().
ALLOWED_TRANSITIONS: dict[WorkMode, frozenset[WorkMode]] = {
    WorkMode.IDLE: frozenset({WorkMode.WORKING, WorkMode.BREAK, WorkMode.ENDED}),
    WorkMode.WORKING: frozenset({WorkMode.BREAK, WorkMode.ENDED}),
    WorkMode.BREAK: frozenset({WorkMode.WORKING, WorkMode.ENDED}),
    WorkMode.ENDED: frozenset({WorkMode.IDLE}),
}


class WorkTimeCoordinator:
    """Per-client view of the company work mode and the only path for changing it.

    Holds the last applied config, the break / work-end alert flags, and the
    change-feed subscription. Mode listeners are called after a new mode has
    been applied, outside the coordinator's lock.
    """

    def __init__(
        self,
        store: ConfigStore,
        actor: Actor,
        *,
        subscription_factory: Optional[Callable[..., ResilientSubscription]] = None,
    ):
        self._store = store
        self._actor = actor
        self._subscription_factory = subscription_factory or ResilientSubscription
        self._subscription: Optional[ResilientSubscription] = None
        self._listeners: list[ModeListener] = []
        self._lock = threading.RLock()

        self._config = CompanyWorkConfig.defaults(actor.company_id)
        self._loaded = False
        self.is_loading = True
        self.break_alert_active = False
        self.work_end_alert_active = False

    # -------- state --------
    @property
    def actor(self) -> Actor:
        return self._actor

    @property
    def company_id(self) -> str:
        return self._actor.company_id

    @property
    def config(self) -> CompanyWorkConfig:
        return self._config

    @property
    def global_mode(self) -> WorkMode:
        return self._config.current_mode

    @property
    def active_break_reason(self) -> Optional[str]:
        return self._config.active_break_reason

    @property
    def version(self) -> int:
        return self._config.version

    @property
    def subscription_state(self) -> SubscriptionState:
        return self._subscription.state if self._subscription else SubscriptionState.PENDING

    def add_listener(self, listener: ModeListener) -> None:
        if not callable(listener):
            raise ValueError("Listener must be callable")
        self._listeners.append(listener)

    def remove_listener(self, listener: ModeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # -------- loading & subscription --------
    def load_config(self) -> CompanyWorkConfig:
        try:
            config = self._store.read(self.company_id)
        except DomainError:
            raise
        except Exception as e:
            logger.exception("Failed to load work config (company=%s)", self.company_id)
            raise ConfigUnavailable("Could not load company work settings") from e

        if config is None:
            raise ConfigUnavailable(f"No work settings found for company {self.company_id}")

        with self._lock:
            first_load = not self._loaded
            if first_load:
                self._config = config
                self._loaded = True
                self.is_loading = False

        if not first_load:
            self.apply_change(config)
        return self._config

    refresh_config = load_config

    def subscribe_to_mode_changes(self, **subscription_options: Any) -> ResilientSubscription:
        with self._lock:
            if self._subscription is not None and self._subscription.state in (
                SubscriptionState.OPEN,
                SubscriptionState.RECONNECTING,
            ):
                return self._subscription
            self._subscription = self._subscription_factory(
                self._store,
                self.company_id,
                self.apply_change,
                on_reconnect=self.load_config,
                **subscription_options,
            )
            subscription = self._subscription
        return subscription.open()

    def close(self) -> None:
        with self._lock:
            subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.close()

    # -------- change application --------
    def apply_change(self, config: CompanyWorkConfig) -> bool:
        """Apply a delivered config row; return True when the mode changed.

        Rows for other companies and rows not newer than the applied version
        are ignored, so duplicate or out-of-order notifications (including the
        echo of this client's own write) never fire an alert twice.
        """

        if config.company_id != self.company_id:
            return False

        with self._lock:
            if self._loaded and config.version <= self._config.version:
                logger.debug(
                    "Ignoring stale config v%s (applied v%s, company=%s)",
                    config.version,
                    self._config.version,
                    self.company_id,
                )
                return False

            previous = self._config.current_mode
            self._config = config
            self._loaded = True
            self.is_loading = False

            current = config.current_mode
            if current == previous:
                return False

            if current is WorkMode.BREAK:
                self.break_alert_active = True
            elif current is WorkMode.WORKING:
                self.break_alert_active = False
            elif current is WorkMode.ENDED:
                self.work_end_alert_active = True
            elif current is WorkMode.IDLE:
                self.break_alert_active = False
                self.work_end_alert_active = False

        logger.info("Company %s mode %s -> %s (v%s)", self.company_id, previous.value, current.value, config.version)
        for listener in list(self._listeners):
            try:
                listener(previous, current, config)
            except Exception:
                logger.exception("Error in mode listener")
        return True

    # -------- privileged transitions --------
    def _require_mode_control(self) -> None:
        require_capability(
            self._actor,
            Capability.CONTROL_GLOBAL_WORK_MODE,
            "You do not have permission to control the company work mode",
        )

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load_config()

    def set_global_mode(self, mode: WorkMode | str, reason: Optional[str] = None) -> CompanyWorkConfig:
        try:
            mode = WorkMode(mode)
        except ValueError:
            raise ValidationError(f"Unknown work mode: {mode!r}")

        reason = require_non_empty(reason, "Break reason") if mode is WorkMode.BREAK else None
        self._require_mode_control()

        self._ensure_loaded()
        with self._lock:
            current = self._config.current_mode
            expected_version = self._config.version

        if mode not in ALLOWED_TRANSITIONS[current]:
            raise ValidationError(f"Cannot switch work mode from {current.value} to {mode.value}")

        result = self._write(
            {"current_mode": mode, "active_break_reason": reason},
            expected_version=expected_version,
        )
        if result.status is WriteStatus.CONFLICT:
            logger.warning("Mode write conflict (company=%s, expected v%s)", self.company_id, expected_version)
            raise WriteConflict("Work mode was changed by someone else; refresh and try again")

        self.apply_change(result.config)
        return result.config

    def start_global_break(self, reason: str) -> CompanyWorkConfig:
        return self.set_global_mode(WorkMode.BREAK, reason)

    def end_global_break(self) -> CompanyWorkConfig:
        return self.set_global_mode(WorkMode.WORKING)

    def end_all_work(self) -> CompanyWorkConfig:
        return self.set_global_mode(WorkMode.ENDED)

    def start_global_work(self) -> CompanyWorkConfig:
        self._require_mode_control()
        if self.global_mode is WorkMode.BREAK:
            raise ValidationError("A break is in progress; end the break to resume work")
        return self.set_global_mode(WorkMode.WORKING)

    def start_new_work_day(self) -> CompanyWorkConfig:
        return self.set_global_mode(WorkMode.IDLE)

    def update_config(self, partial: Mapping[str, Any]) -> CompanyWorkConfig:
        """Save schedule fields (last write wins). Keys outside SCHEDULE_FIELDS are rejected."""

        if not isinstance(partial, Mapping):
            raise ValidationError("Work settings must be an object")

        unknown = set(partial) - set(SCHEDULE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown work setting(s): {', '.join(sorted(map(str, unknown)))}")

        changes: dict[str, Any] = {}
        for key, value in partial.items():
            if value is None:
                continue
            if key == "auto_break_enabled":
                changes[key] = require_bool(value, key)
            else:
                changes[key] = require_hhmm(value, key)
        if not changes:
            raise ValidationError("No work settings to update")

        require_capability(
            self._actor,
            Capability.UPDATE_WORK_SCHEDULE,
            "You do not have permission to update company work settings",
        )

        result = self._write(changes)
        self.apply_change(result.config)
        return result.config

    def _write(self, changes: dict[str, Any], *, expected_version: Optional[int] = None):
        try:
            result = self._store.update(self.company_id, changes, expected_version=expected_version)
        except DomainError:
            raise
        except Exception as e:
            logger.exception("Work config write failed (company=%s)", self.company_id)
            raise ConfigUnavailable("Could not save company work settings") from e

        if result.status is WriteStatus.DENIED:
            logger.warning("Store affected zero rows for company=%s user=%s", self.company_id, self._actor.user_id)
            raise PermissionDenied("Permission denied: you cannot update this company's work settings")
        return result

    # -------- alerts --------
    def dismiss_break_alert(self) -> None:
        with self._lock:
            self.break_alert_active = False

    def dismiss_work_end_alert(self) -> None:
        with self._lock:
            self.work_end_alert_active = False

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "global_mode": self._config.current_mode.value,
                "active_break_reason": self._config.active_break_reason,
                "break_alert_active": self.break_alert_active,
                "work_end_alert_active": self.work_end_alert_active,
                "is_loading": self.is_loading,
                "subscription": self.subscription_state.value,
                "config": self._config.to_dict(),
            }
