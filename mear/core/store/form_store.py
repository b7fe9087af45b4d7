"""
Form State Store

Single source of truth for one in-progress registry case.

Every mutation runs the same pipeline:
    1. merge the change into the raw snapshot
    2. recompute CalculatedValues from the whole snapshot
    3. diff the rule engine's output against the previous run and surface
       only alerts whose ids are new
    4. recompute the active protocols
    5. mark the snapshot dirty, notify listeners, schedule an auto-save

Persistence degrades in two tiers.  The registry backend is tried first; the
local diskcache mirror is written on every save regardless, and is read
back only when the backend cannot serve a draft.  No persistence path
raises to the caller.
"""
from __future__ import annotations

import asyncio
import copy
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

from mear.config import Settings
from mear.core.calculations import CalculatedValues, calculate_all_values
from mear.core.clinical import (
    AlertCategory,
    AlertLevel,
    ClinicalAlert,
    ProtocolActivation,
    generate_alerts,
    get_activated_protocols,
)
from mear.core.phases import FIRST_PHASE, MONITORING_PHASE
from mear.utils.exceptions import DraftNotFoundError, DraftPersistenceError, RegistryError

from .location import NavigationState
from .scheduler import AsyncioScheduler, Scheduler, TimerHandle

logger = logging.getLogger(__name__)

Listener = Callable[["FormStore"], None]

# ── Post-intubation monitoring schedule (seconds after timer start) ─────────
MONITORING_INTERVALS = ["post_5min", "post_10min", "post_15min", "post_30min"]
MONITORING_OFFSETS: Dict[str, float] = {
    "post_5min": 5 * 60,
    "post_10min": 10 * 60,
    "post_15min": 15 * 60,
    "post_30min": 30 * 60,
}
MONITORING_ALERT_PREFIX = "monitoring-"

_REMINDERS: Dict[str, Dict[str, Any]] = {
    "post_5min": {
        "level": AlertLevel.WARNING,
        "title": "5-Minute Vitals Due",
        "message": "Record post-intubation vitals at 5 minutes",
    },
    "post_10min": {
        "level": AlertLevel.WARNING,
        "title": "10-Minute Vitals Due",
        "message": "Record post-intubation vitals at 10 minutes",
    },
    "post_15min": {
        "level": AlertLevel.WARNING,
        "title": "15-Minute Vitals Due",
        "message": "Record post-intubation vitals at 15 minutes",
    },
    "post_30min": {
        "level": AlertLevel.INFO,
        "title": "30-Minute Vitals Due",
        "message": "Record post-intubation vitals at 30 minutes - final monitoring point",
    },
}


class StoreStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    SAVING = "saving"


def monitoring_alert_id(interval: str) -> str:
    """post_10min → monitoring-10min-due"""
    return f"{MONITORING_ALERT_PREFIX}{interval.replace('post_', '')}-due"


def is_monitoring_alert(alert: ClinicalAlert) -> bool:
    return alert.alert_id.startswith(MONITORING_ALERT_PREFIX)


def _survives_phase_change(alert: ClinicalAlert) -> bool:
    return (
        alert.is_critical
        or alert.category is None
        or alert.category == AlertCategory.HEMODYNAMIC
        or is_monitoring_alert(alert)
    )


def deep_merge(base: Mapping[str, Any], partial: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursive merge; nested dicts merge, everything else is replaced."""
    merged = dict(base)
    for key, value in partial.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _assign(node: Any, keys: List[str], value: Any) -> Any:
    key, rest = keys[0], keys[1:]

    # numeric segments index into lists (intubationAttempts.1.bladeSize)
    if isinstance(node, list) or (node is None and key.isdigit()):
        if not key.isdigit():
            raise ValueError(f"list index expected, got {key!r}")
        index = int(key)
        updated = list(node or [])
        if index >= len(updated):
            updated.extend([None] * (index + 1 - len(updated)))
        updated[index] = _assign(updated[index], rest, value) if rest else copy.deepcopy(value)
        return updated

    updated = dict(node) if isinstance(node, Mapping) else {}
    updated[key] = _assign(updated.get(key), rest, value) if rest else copy.deepcopy(value)
    return updated


def set_path(data: Mapping[str, Any], path: str, value: Any) -> Dict[str, Any]:
    """
    Copy of ``data`` with ``value`` written at a dotted path.

    Lists along the path are copied and addressed by index, growing with
    None padding when the index is past the end.  A scalar in the way is
    replaced by a new container.
    """
    keys = [k for k in path.split(".") if k]
    if not keys:
        raise ValueError("field path must not be empty")
    return _assign(dict(data), keys, value)


class FormStore:
    """
    Reactive state container for one registry case.

    Collaborators are injected: ``registry`` (RegistryClient or None for
    offline use), ``mirror`` (LocalDraftMirror or None), ``navigation`` (the
    page location), ``scheduler`` (timers and background saves) and
    ``clock`` (seconds, monotonic enough for elapsed-time maths).
    """

    def __init__(
        self,
        registry=None,
        mirror=None,
        navigation: Optional[NavigationState] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], float] = time.time,
        settings: Optional[Settings] = None,
        monitoring_offsets: Optional[Dict[str, float]] = None,
    ):
        self.registry = registry
        self.mirror = mirror
        self.navigation = navigation or NavigationState()
        self.scheduler = scheduler or AsyncioScheduler()
        self.clock = clock
        self.settings = settings or Settings()
        self.monitoring_offsets = dict(monitoring_offsets or MONITORING_OFFSETS)

        self._listeners: List[Listener] = []
        # bumped by clear_form; a save started before the bump is discarded
        self._generation = 0
        self._reset_state()
        self.status = StoreStatus.READY

    def _reset_state(self) -> None:
        # ── Snapshot & derived ────────────────────────────────────────────
        self.data: Dict[str, Any] = {}
        self.calculated_values = CalculatedValues()
        self.alerts: List[ClinicalAlert] = []
        self.active_protocols: List[ProtocolActivation] = []

        # ── Navigation & completeness ─────────────────────────────────────
        self.current_phase: str = FIRST_PHASE
        self.completed_phases: List[str] = []
        self.is_complete = False
        self.is_draft = False

        # ── Monitoring timer ──────────────────────────────────────────────
        self.timer_active = False
        self.timer_start_time: Optional[float] = None
        self.elapsed_time = 0
        self.next_monitoring_due: Optional[str] = None
        self.completed_intervals: List[str] = []

        # ── Draft identity ────────────────────────────────────────────────
        self.draft_id: Optional[str] = None
        self.current_hospital_no: Optional[str] = None

        # ── Internal bookkeeping ──────────────────────────────────────────
        self._computed_alert_ids: Set[str] = set()
        self._alert_shown_at: Dict[str, float] = {}
        self._dismiss_handles: Dict[str, TimerHandle] = {}
        self._reminder_handles: Dict[str, TimerHandle] = {}
        self._save_handle: Optional[TimerHandle] = None
        self._pending_since: Optional[float] = None
        self._revision = 0
        self._saving = False
        self._save_again = False
        self._save_idle: Optional[asyncio.Event] = None
        self._saves_held = False

    # ── Subscription ──────────────────────────────────────────────────────
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns its unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as exc:
                logger.error(f"Store listener raised {exc}", exc_info=True)

    # ── Mutations ─────────────────────────────────────────────────────────
    def set_data(self, partial: Mapping[str, Any]) -> None:
        """Deep-merge a partial snapshot."""
        self.data = deep_merge(self.data, partial or {})
        self._after_mutation()

    def update_field(self, path: str, value: Any) -> None:
        """Write one value at a dotted path (``preInductionVitals.heartRate``)."""
        self.data = set_path(self.data, path, value)
        self._after_mutation()

    def _after_mutation(self) -> None:
        self._revision += 1
        self.calculated_values = calculate_all_values(self.data)
        self._refresh_alerts()
        self.active_protocols = get_activated_protocols(self.data)
        self.is_draft = True
        self._notify()
        if self.settings.autosave_enabled:
            self.request_save()

    def recalculate(self) -> CalculatedValues:
        self.calculated_values = calculate_all_values(self.data)
        return self.calculated_values

    def _refresh_alerts(self) -> None:
        computed = generate_alerts(self.data)
        ids = {a.alert_id for a in computed}
        resolved = self._computed_alert_ids - ids

        if resolved:
            for alert_id in resolved:
                self._cancel_dismiss(alert_id)
                self._alert_shown_at.pop(alert_id, None)
            self.alerts = [a for a in self.alerts if a.alert_id not in resolved]

        for alert in computed:
            if alert.alert_id not in self._computed_alert_ids:
                self._upsert_alert(alert, auto_dismiss=True)

        self._computed_alert_ids = ids

    # ── Alerts ────────────────────────────────────────────────────────────
    def add_alert(self, alert: ClinicalAlert, auto_dismiss: bool = True) -> None:
        """
        Insert or replace an alert by id.  Non-critical alerts disappear
        after the display window unless ``auto_dismiss`` is False.
        """
        self._upsert_alert(alert, auto_dismiss)
        self._notify()

    def _upsert_alert(self, alert: ClinicalAlert, auto_dismiss: bool) -> None:
        fresh = alert.refreshed()
        for index, existing in enumerate(self.alerts):
            if existing.alert_id == alert.alert_id:
                self.alerts[index] = fresh
                break
        else:
            self.alerts.append(fresh)

        self._alert_shown_at[alert.alert_id] = self.clock()
        self._cancel_dismiss(alert.alert_id)
        if auto_dismiss and not fresh.is_critical:
            self._dismiss_handles[alert.alert_id] = self.scheduler.call_later(
                self.settings.alert_display_seconds, self.dismiss_alert, alert.alert_id
            )

    def dismiss_alert(self, alert_id: str) -> None:
        self._cancel_dismiss(alert_id)
        self._alert_shown_at.pop(alert_id, None)
        before = len(self.alerts)
        self.alerts = [a for a in self.alerts if a.alert_id != alert_id]
        if len(self.alerts) != before:
            self._notify()

    def clear_all_alerts(self) -> None:
        for alert_id in list(self._dismiss_handles):
            self._cancel_dismiss(alert_id)
        self._alert_shown_at.clear()
        self.alerts = []
        self._notify()

    def clear_stale_alerts(self) -> None:
        """Drop non-critical alerts shown longer than the stale window."""
        cutoff = self.clock() - self.settings.stale_alert_seconds
        keep: List[ClinicalAlert] = []
        for alert in self.alerts:
            shown_at = self._alert_shown_at.get(alert.alert_id, self.clock())
            if alert.is_critical or shown_at >= cutoff:
                keep.append(alert)
            else:
                self._cancel_dismiss(alert.alert_id)
                self._alert_shown_at.pop(alert.alert_id, None)
        if len(keep) != len(self.alerts):
            logger.debug(f"Cleared {len(self.alerts) - len(keep)} stale alert(s)")
            self.alerts = keep
            self._notify()

    def _cancel_dismiss(self, alert_id: str) -> None:
        handle = self._dismiss_handles.pop(alert_id, None)
        if handle is not None:
            handle.cancel()

    # ── Phases ────────────────────────────────────────────────────────────
    def set_current_phase(self, phase_id: str) -> None:
        """
        Move to ``phase_id``.  Leaving a phase discards its transient alerts;
        entering the monitoring phase starts the timer.
        """
        changed = phase_id != self.current_phase
        self.current_phase = phase_id

        if changed:
            keep = []
            for alert in self.alerts:
                if _survives_phase_change(alert):
                    keep.append(alert)
                else:
                    self._cancel_dismiss(alert.alert_id)
                    self._alert_shown_at.pop(alert.alert_id, None)
            self.alerts = keep

        if phase_id == MONITORING_PHASE and not self.timer_active:
            self.start_timer()

        if changed:
            self.is_draft = True
        self._notify()
        if changed and self.settings.autosave_enabled:
            self.request_save()

    def mark_phase_complete(self, phase_id: str) -> None:
        if phase_id not in self.completed_phases:
            self.completed_phases.append(phase_id)
            self._notify()

    def mark_complete(self) -> None:
        """Flag the case as registered.  No auto-save runs after this."""
        self.cancel_pending_save()
        self.is_complete = True
        self.is_draft = False
        self._notify()

    # ── Monitoring timer ──────────────────────────────────────────────────
    def start_timer(self) -> None:
        """Start the post-intubation clock and schedule the interval reminders."""
        self._cancel_reminders()
        self.timer_active = True
        self.timer_start_time = self.clock()
        self.elapsed_time = 0
        self.next_monitoring_due = MONITORING_INTERVALS[0]

        for interval in MONITORING_INTERVALS:
            if interval in self.completed_intervals:
                continue
            self._reminder_handles[interval] = self.scheduler.call_later(
                self.monitoring_offsets[interval], self._fire_monitoring_reminder, interval
            )
        logger.info("Monitoring timer started")
        self._notify()

    def stop_timer(self) -> None:
        self._cancel_reminders()
        self.timer_active = False
        self.timer_start_time = None
        self.next_monitoring_due = None
        logger.info(f"Monitoring timer stopped at {self.elapsed_time}s")
        self._notify()

    def update_elapsed_time(self) -> int:
        if self.timer_active and self.timer_start_time is not None:
            self.elapsed_time = int(self.clock() - self.timer_start_time)
            self._notify()
        return self.elapsed_time

    def complete_monitoring_interval(self, interval: str) -> None:
        if interval not in MONITORING_INTERVALS:
            logger.warning(f"Unknown monitoring interval {interval!r} ignored")
            return
        if interval not in self.completed_intervals:
            self.completed_intervals.append(interval)

        handle = self._reminder_handles.pop(interval, None)
        if handle is not None:
            handle.cancel()

        position = MONITORING_INTERVALS.index(interval)
        following = MONITORING_INTERVALS[position + 1:]
        self.next_monitoring_due = following[0] if following else None

        alert_id = monitoring_alert_id(interval)
        self.alerts = [a for a in self.alerts if a.alert_id != alert_id]
        self._alert_shown_at.pop(alert_id, None)
        self._notify()

    def _fire_monitoring_reminder(self, interval: str) -> None:
        self._reminder_handles.pop(interval, None)
        if not self.timer_active or interval in self.completed_intervals:
            return
        if interval != MONITORING_INTERVALS[0]:
            self.next_monitoring_due = interval

        reminder_text = _REMINDERS[interval]
        reminder = ClinicalAlert(
            alert_id=monitoring_alert_id(interval),
            level=reminder_text["level"],
            category=AlertCategory.PROCEDURAL,
            title=reminder_text["title"],
            message=reminder_text["message"],
            triggers=[f"timer_{interval.replace('post_', '')}"],
            actions=["Record vitals in the monitoring table"],
        )
        logger.info(f"Monitoring reminder fired: {reminder.alert_id}")
        self.add_alert(reminder, auto_dismiss=False)

    def _cancel_reminders(self) -> None:
        for handle in self._reminder_handles.values():
            handle.cancel()
        self._reminder_handles.clear()

    # ── Persistence ───────────────────────────────────────────────────────
    def request_save(self) -> None:
        """
        Debounced auto-save: fires after a quiet period, but no later than
        the max-wait cap measured from the first unsaved change.
        Does nothing while saves are held or once the case is complete.
        """
        if self._saves_held or self.is_complete:
            return
        now = self.clock()
        if self._pending_since is None:
            self._pending_since = now
        waited = now - self._pending_since
        delay = min(self.settings.save_debounce_seconds, self.settings.save_max_wait_seconds - waited)

        if self._save_handle is not None:
            self._save_handle.cancel()
        self._save_handle = self.scheduler.call_later(max(0.0, delay), self._flush_pending_save)

    def _flush_pending_save(self) -> None:
        self._save_handle = None
        self.scheduler.spawn(self.save_draft())

    def cancel_pending_save(self) -> None:
        """Drop a scheduled auto-save and any queued follow-up save."""
        if self._save_handle is not None:
            self._save_handle.cancel()
            self._save_handle = None
        self._pending_since = None
        self._save_again = False

    def hold_saves(self) -> None:
        """Suspend auto-save (e.g. while the case is being submitted)."""
        self._saves_held = True
        self.cancel_pending_save()

    def release_saves(self) -> None:
        """Resume auto-save and reschedule it if there are unsaved changes."""
        self._saves_held = False
        if self.is_draft and self.settings.autosave_enabled:
            self.request_save()

    async def wait_for_save(self) -> None:
        """Wait for a save that is already talking to the backend."""
        if self._saving and self._save_idle is not None:
            await self._save_idle.wait()

    def _hospital_no(self) -> Optional[str]:
        if self.current_hospital_no:
            return self.current_hospital_no
        value = (self.data.get("demographics") or {}).get("hospitalNo")
        return str(value) if value not in (None, "") else None

    def _adopt_identity(self, payload: Mapping[str, Any]) -> None:
        first_id = self.draft_id is None and payload.get("id") is not None
        if payload.get("id") is not None:
            self.draft_id = str(payload["id"])
            self.navigation.set("draftId", self.draft_id)
        if payload.get("hospitalNo"):
            self.current_hospital_no = str(payload["hospitalNo"])
        if first_id and self.mirror is not None:
            # mirror entries written before the id existed are superseded
            try:
                self.mirror.drop_provisional(self._hospital_no())
            except DraftPersistenceError as e:
                logger.error(f"Could not drop provisional draft mirror: {e.message}")

    async def create_draft(self) -> Optional[str]:
        """Create a backend draft for the current snapshot; None on failure."""
        if self.registry is None:
            return None
        generation = self._generation
        try:
            payload = await self.registry.create_draft(self.data, self.current_phase)
        except RegistryError as e:
            logger.warning(f"Draft creation failed: {e.message}")
            return None
        if payload.get("id") is None:
            logger.warning("Draft creation returned no id")
            return None
        if generation != self._generation:
            logger.info(f"Form cleared while draft {payload['id']} was being created")
            return None
        self._adopt_identity(payload)
        logger.info(f"Draft created: {self.draft_id}")
        self._notify()
        return self.draft_id

    async def save_draft(self) -> bool:
        """
        Persist the snapshot.  Returns True when the backend accepted it.
        The local mirror is written either way.  Never raises.
        Skipped while saves are held and once the case is complete.
        """
        if self._saves_held or self.is_complete:
            logger.debug("Draft save skipped: saves are held or the case is complete")
            return False
        if self._saving:
            self._save_again = True
            return False

        if self._save_handle is not None:
            self._save_handle.cancel()
            self._save_handle = None
        self._pending_since = None

        self._saving = True
        self._save_idle = idle = asyncio.Event()
        self.status = StoreStatus.SAVING
        generation = self._generation
        revision = self._revision
        saved = False
        try:
            if self.registry is not None:
                if self.draft_id is None:
                    saved = await self.create_draft() is not None
                else:
                    payload = await self.registry.update_draft(
                        self.draft_id, self.data, self.current_phase, self._hospital_no()
                    )
                    if generation == self._generation:
                        self._adopt_identity(payload)
                        saved = True
        except RegistryError as e:
            logger.warning(f"Draft save fell back to local mirror: {e.message}")
        except Exception as e:
            logger.error(f"Unexpected error saving draft: {e}", exc_info=True)
        finally:
            idle.set()
            if generation == self._generation:
                self._write_mirror()
                if saved and revision == self._revision:
                    self.is_draft = False
                self.status = StoreStatus.READY
                self._saving = False

        if generation != self._generation:
            return False

        self._notify()
        if self._save_again:
            self._save_again = False
            if self.is_draft:
                self.request_save()
        return saved

    def _write_mirror(self) -> None:
        if self.mirror is None:
            return
        try:
            self.mirror.write(
                self.data,
                self.current_phase,
                draft_id=self.draft_id,
                hospital_no=self._hospital_no(),
                timestamp=self.clock(),
            )
        except DraftPersistenceError as e:
            logger.error(f"Local draft mirror unavailable: {e.message}")

    async def load_draft(self, draft_id: Optional[str] = None, hospital_no: Optional[str] = None) -> bool:
        """
        Restore a draft.  The identifier comes from the arguments, else the
        store, else the page location, else the newest local mirror entry.
        The backend is asked first; the local mirror is the fallback.
        Returns False when nothing is found.  The current snapshot is then
        kept as it was, not reset to defaults; only stale non-critical
        alerts are cleared.  Call clear_form() first for a blank form.
        """
        draft_id = draft_id or self.draft_id or self.navigation.get("draftId")
        hospital_no = hospital_no or self.current_hospital_no or self.navigation.get("hospitalNo")
        self.status = StoreStatus.LOADING

        newest: Optional[Dict[str, Any]] = None
        if draft_id is None and not hospital_no:
            newest = self._mirror_lookup(latest=True)
            if newest:
                draft_id = newest.get("draftId")
                hospital_no = newest.get("hospitalNo")

        if self.registry is not None and (draft_id is not None or hospital_no):
            try:
                record = await self.registry.get_draft(draft_id, hospital_no)
            except DraftNotFoundError:
                logger.info(f"No backend draft for id={draft_id} hospitalNo={hospital_no}")
            except RegistryError as e:
                logger.warning(f"Backend draft lookup failed, trying local mirror: {e.message}")
            except Exception as e:
                logger.error(f"Unexpected error loading draft: {e}", exc_info=True)
            else:
                self._apply_loaded(record.form, record.current_phase, record.id, record.hospital_no or hospital_no)
                logger.info(f"Draft {record.id} restored from registry")
                return True

        entry = newest
        if entry is None and (draft_id is not None or hospital_no):
            entry = self._mirror_lookup(draft_id=draft_id, hospital_no=hospital_no)
        if entry:
            self._apply_loaded(
                entry.get("data") or {},
                entry.get("currentPhase"),
                entry.get("draftId") or draft_id,
                entry.get("hospitalNo") or hospital_no,
            )
            logger.info(f"Draft restored from local mirror (id={self.draft_id})")
            return True

        logger.info("No draft found to restore")
        self.status = StoreStatus.READY
        self.clear_stale_alerts()
        self._notify()
        return False

    def _mirror_lookup(self, draft_id=None, hospital_no=None, latest: bool = False) -> Optional[Dict[str, Any]]:
        if self.mirror is None:
            return None
        try:
            if latest:
                return self.mirror.latest()
            return self.mirror.find(draft_id, hospital_no)
        except DraftPersistenceError as e:
            logger.error(f"Local draft mirror unavailable: {e.message}")
            return None

    def _apply_loaded(self, form, phase, draft_id, hospital_no) -> None:
        self.data = copy.deepcopy(dict(form or {}))
        self.current_phase = phase or FIRST_PHASE
        self.draft_id = str(draft_id) if draft_id is not None else None
        self.current_hospital_no = str(hospital_no) if hospital_no else None
        if self.draft_id is not None:
            self.navigation.set("draftId", self.draft_id)

        self.calculated_values = calculate_all_values(self.data)

        # alerts and protocols are recomputed on the next mutation
        keep = []
        for alert in self.alerts:
            if is_monitoring_alert(alert):
                keep.append(alert)
            else:
                self._cancel_dismiss(alert.alert_id)
                self._alert_shown_at.pop(alert.alert_id, None)
        self.alerts = keep
        self._computed_alert_ids = set()
        self.active_protocols = []

        self.is_draft = False
        self.status = StoreStatus.READY
        self._notify()

    def clear_form(self) -> None:
        """Drop the local mirror for this draft and reset to defaults."""
        if self.mirror is not None:
            try:
                self.mirror.remove(self.draft_id, self._hospital_no())
            except DraftPersistenceError as e:
                logger.error(f"Could not clear local draft mirror: {e.message}")

        self._cancel_reminders()
        for alert_id in list(self._dismiss_handles):
            self._cancel_dismiss(alert_id)
        self.cancel_pending_save()

        self._generation += 1
        self._reset_state()
        self.navigation.remove("draftId")
        self.navigation.remove("hospitalNo")
        self.status = StoreStatus.READY
        logger.info("Form cleared")
        self._notify()

    # ── Views ─────────────────────────────────────────────────────────────
    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": copy.deepcopy(self.data),
            "calculatedValues": self.calculated_values.to_dict(),
            "alerts": [a.to_dict() for a in self.alerts],
            "activeProtocols": [p.to_dict() for p in self.active_protocols],
            "currentPhase": self.current_phase,
            "completedPhases": list(self.completed_phases),
            "isComplete": self.is_complete,
            "isDraft": self.is_draft,
            "timerActive": self.timer_active,
            "timerStartTime": self.timer_start_time,
            "elapsedTime": self.elapsed_time,
            "nextMonitoringDue": self.next_monitoring_due,
            "completedIntervals": list(self.completed_intervals),
            "draftId": self.draft_id,
            "hospitalNo": self._hospital_no(),
            "status": self.status.value,
        }

    def report_payload(self) -> Dict[str, Any]:
        """Snapshot shaped for the case report generator."""
        d = self.data
        return {
            "demographics": d.get("demographics") or {},
            "vitals": d.get("preInductionVitals") or {},
            "gcs": d.get("gcs") or {},
            "indication": d.get("indication") or {},
            "comorbidities": d.get("comorbidities") or {},
            "leonScore": d.get("leonScore") or {},
            "preInductionLabs": d.get("preInductionLabs") or {},
            "airwayStatus": d.get("airwayStatus") or {},
            "preIntubationManagement": d.get("preIntubationManagement") or {},
            "postIntubationGcs": d.get("postIntubationGcs") or {},
            "ventilatorSettings": d.get("ventilatorSettings") or {},
            "postIntubationEvents": d.get("postIntubationEvents") or {},
            "intubationAttempts": d.get("intubationAttempts") or [],
            "monitoringTable": d.get("monitoringTable") or {},
            "calculatedValues": self.calculated_values.to_dict(),
            "alerts": [a.to_dict() for a in self.alerts],
            "activeProtocols": [p.to_dict() for p in self.active_protocols],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
