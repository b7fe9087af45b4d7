"""
Form State Store

Usage:
    from mear.core.store import FormStore, NavigationState

    store = FormStore(registry=client, mirror=mirror)
    store.update_field("preInductionVitals.heartRate", "120")
    store.calculated_values.shock_index
"""
from .form_store import (
    FormStore,
    StoreStatus,
    MONITORING_INTERVALS,
    deep_merge,
    set_path,
    monitoring_alert_id,
)
from .location import NavigationState
from .scheduler import AsyncioScheduler, Scheduler, TimerHandle

__all__ = [
    "FormStore",
    "StoreStatus",
    "MONITORING_INTERVALS",
    "deep_merge",
    "set_path",
    "monitoring_alert_id",
    "NavigationState",
    "AsyncioScheduler",
    "Scheduler",
    "TimerHandle",
]
