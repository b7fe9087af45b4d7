"""
Unit Tests for Draft Persistence

Backend create / upsert, restore into a fresh store, the local mirror
fallback when the backend is down, identifier resolution and the
debounced auto-save.
"""
import httpx

from mear.config import Settings
from mear.core.store import FormStore, NavigationState
from mear.services import RegistryClient


def fresh_store(registry, mirror, scheduler, clock, settings, navigation=None) -> FormStore:
    return FormStore(
        registry=registry,
        mirror=mirror,
        navigation=navigation or NavigationState(),
        scheduler=scheduler,
        clock=clock,
        settings=settings,
    )


def methods(backend, path="/api/draft"):
    return [r.method for r in backend.requests if r.url.path == path]


class TestSaveDraft:
    """Create-then-upsert against the registry backend."""

    async def test_first_save_creates_draft(self, store, backend, mirror, navigation, complete_snapshot):
        store.set_data(complete_snapshot)
        assert store.is_draft is True

        assert await store.save_draft() is True

        assert store.draft_id == "1"
        assert navigation.get("draftId") == "1"
        assert store.is_draft is False
        assert backend.drafts["1"]["hospitalNo"] == "HN-1001"
        assert mirror.read(draft_id="1")["data"] == store.data

    async def test_second_save_upserts(self, store, backend, complete_snapshot):
        store.set_data(complete_snapshot)
        await store.save_draft()
        store.update_field("preInductionVitals.heartRate", "104")
        await store.save_draft()

        assert methods(backend) == ["POST", "PUT"]
        assert backend.drafts["1"]["form"]["preInductionVitals"]["heartRate"] == "104"
        assert backend.drafts["1"]["hospitalNo"] == "HN-1001"
        assert store.current_hospital_no == "HN-1001"

    async def test_backend_down_writes_mirror_only(self, store, backend, mirror, complete_snapshot):
        backend.fail_all = True
        store.set_data(complete_snapshot)

        assert await store.save_draft() is False
        assert store.is_draft is True
        assert store.draft_id is None
        entry = mirror.latest()
        assert entry["data"] == store.data
        assert entry["hospitalNo"] == "HN-1001"

    async def test_offline_store_saves_to_mirror(self, mirror, scheduler, clock, settings):
        store = fresh_store(None, mirror, scheduler, clock, settings)
        store.update_field("demographics.age", "60")

        assert await store.save_draft() is False
        assert mirror.latest()["data"] == {"demographics": {"age": "60"}}

    async def test_mutation_during_save_keeps_dirty_flag(self, backend, mirror, scheduler, clock, settings):
        holder = {}

        def handler(request):
            holder["store"].update_field("demographics.age", "33")
            return backend.handler(request)

        registry = RegistryClient("http://registry.test", token="token-123", transport=httpx.MockTransport(handler))
        store = fresh_store(registry, mirror, scheduler, clock, settings)
        holder["store"] = store
        store.update_field("demographics.age", "32")

        assert await store.save_draft() is True
        assert store.is_draft is True
        assert store.data["demographics"]["age"] == "33"

    async def test_draft_id_supersedes_scratch_mirror_entry(self, store, backend, mirror):
        backend.fail_all = True
        store.update_field("demographics.age", "50")
        await store.save_draft()
        assert mirror.read()["data"] == {"demographics": {"age": "50"}}

        backend.fail_all = False
        assert await store.save_draft() is True
        assert mirror.read() is None
        assert mirror.read(draft_id="1")["draftId"] == "1"

        store.clear_form()
        assert mirror.latest() is None

    async def test_draft_id_supersedes_hospital_number_entry(self, store, backend, mirror, complete_snapshot):
        backend.fail_all = True
        store.set_data(complete_snapshot)
        await store.save_draft()
        assert mirror.read(hospital_no="HN-1001") is not None

        backend.fail_all = False
        await store.save_draft()

        assert mirror.read(hospital_no="HN-1001") is None
        assert mirror.latest(hospital_no="HN-1001")["draftId"] == "1"


class TestLoadDraft:
    """Restore paths and identifier resolution."""

    async def test_round_trip_into_fresh_store(self, store, registry, mirror, scheduler, clock, settings, complete_snapshot):
        store.set_data(complete_snapshot)
        store.set_current_phase("vitals")
        await store.save_draft()

        restored = fresh_store(registry, mirror, scheduler, clock, settings)
        assert await restored.load_draft("1") is True

        assert restored.data == store.data
        assert restored.calculated_values == store.calculated_values
        assert restored.current_phase == "vitals"
        assert restored.alerts == []
        assert restored.active_protocols == []
        assert restored.is_draft is False
        assert restored.current_hospital_no == "HN-1001"

    async def test_alerts_recomputed_on_next_mutation(self, store, registry, mirror, scheduler, clock, settings, complete_snapshot):
        store.set_data(complete_snapshot)
        await store.save_draft()

        restored = fresh_store(registry, mirror, scheduler, clock, settings)
        await restored.load_draft("1")
        restored.update_field("demographics.age", "46")

        assert "comorbidity-diabetes" in [a.alert_id for a in restored.alerts]

    async def test_falls_back_to_mirror_when_backend_down(self, store, backend, registry, mirror, scheduler, clock, settings, complete_snapshot):
        store.set_data(complete_snapshot)
        await store.save_draft()
        backend.fail_all = True

        restored = fresh_store(registry, mirror, scheduler, clock, settings)
        assert await restored.load_draft("1") is True
        assert restored.data == store.data
        assert restored.draft_id == "1"

    async def test_mirror_by_hospital_number(self, store, backend, registry, mirror, scheduler, clock, settings, complete_snapshot):
        backend.fail_all = True
        store.set_data(complete_snapshot)
        await store.save_draft()

        restored = fresh_store(registry, mirror, scheduler, clock, settings)
        assert await restored.load_draft(hospital_no="HN-1001") is True
        assert restored.data == store.data
        assert restored.draft_id is None

    async def test_newest_mirror_entry_when_nothing_known(self, backend, registry, mirror, scheduler, clock, settings):
        backend.fail_all = True
        mirror.write({"demographics": {"hospitalNo": "A"}}, "vitals", hospital_no="A", timestamp=10)
        mirror.write({"demographics": {"hospitalNo": "B"}}, "leon", hospital_no="B", timestamp=20)

        restored = fresh_store(registry, mirror, scheduler, clock, settings)
        assert await restored.load_draft() is True
        assert restored.data == {"demographics": {"hospitalNo": "B"}}
        assert restored.current_phase == "leon"

    async def test_draft_id_from_navigation(self, backend, registry, mirror, scheduler, clock, settings):
        backend.drafts["7"] = {
            "id": "7",
            "form": {"demographics": {"age": "71"}},
            "currentPhase": "indication",
            "hospitalNo": "HN-7",
        }
        navigation = NavigationState(params={"draftId": "7"})

        restored = fresh_store(registry, mirror, scheduler, clock, settings, navigation)
        assert await restored.load_draft() is True
        assert restored.draft_id == "7"
        assert restored.current_phase == "indication"
        assert restored.current_hospital_no == "HN-7"

    async def test_nothing_found(self, store):
        assert await store.load_draft() is False
        assert await store.load_draft("99") is False
        assert store.data == {}
        assert store.current_phase == "demographics"
        assert store.status.value == "ready"

    async def test_nothing_found_keeps_current_snapshot(self, store):
        store.update_field("demographics.age", "50")

        assert await store.load_draft("99") is False
        assert store.data == {"demographics": {"age": "50"}}
        assert store.is_draft is True

    async def test_load_keeps_monitoring_reminders(self, store, scheduler, complete_snapshot):
        store.set_data(complete_snapshot)
        store.start_timer()
        scheduler.advance(300)
        await store.save_draft()

        assert await store.load_draft() is True
        assert [a.alert_id for a in store.alerts] == ["monitoring-5min-due"]


class TestClearForm:
    """Reset to defaults."""

    async def test_clear_form(self, store, mirror, navigation, complete_snapshot):
        store.set_data(complete_snapshot)
        await store.save_draft()
        navigation.set("hospitalNo", "HN-1001")

        store.clear_form()

        assert mirror.read(draft_id="1") is None
        assert store.data == {}
        assert store.draft_id is None
        assert store.alerts == []
        assert navigation.get("draftId") is None
        assert navigation.get("hospitalNo") is None

    def test_clear_form_cancels_timers(self, store, scheduler):
        store.start_timer()
        store.clear_form()
        assert scheduler.pending == []
        assert store.timer_active is False

    async def test_clear_form_during_save_discards_result(self, backend, mirror, scheduler, clock, settings, navigation):
        holder = {}

        def handler(request):
            response = backend.handler(request)
            holder["store"].clear_form()
            return response

        registry = RegistryClient("http://registry.test", token="token-123", transport=httpx.MockTransport(handler))
        store = fresh_store(registry, mirror, scheduler, clock, settings, navigation)
        holder["store"] = store
        store.update_field("demographics.age", "50")

        assert await store.save_draft() is False
        assert store.draft_id is None
        assert store.data == {}
        assert navigation.get("draftId") is None
        assert mirror.latest() is None


class TestAutoSave:
    """Debounce with a max-wait cap."""

    def autosave_store(self, registry, mirror, scheduler, clock, tmp_path) -> FormStore:
        settings = Settings(draft_cache_dir=str(tmp_path / "d"), autosave_enabled=True)
        return fresh_store(registry, mirror, scheduler, clock, settings)

    async def test_quiet_period_coalesces_edits(self, registry, backend, mirror, scheduler, clock, tmp_path):
        store = self.autosave_store(registry, mirror, scheduler, clock, tmp_path)

        store.update_field("demographics.age", "1")
        scheduler.advance(1)
        store.update_field("demographics.age", "2")
        scheduler.advance(1.5)
        assert scheduler.tasks == []

        scheduler.advance(0.6)
        assert len(scheduler.tasks) == 1

        await scheduler.run_tasks()
        assert methods(backend) == ["POST"]
        assert backend.drafts["1"]["form"] == {"demographics": {"age": "2"}}
        assert store.is_draft is False

    async def test_max_wait_forces_save(self, registry, backend, mirror, scheduler, clock, tmp_path):
        store = self.autosave_store(registry, mirror, scheduler, clock, tmp_path)

        for second in range(9):
            store.update_field("demographics.age", str(second))
            scheduler.advance(1)
        assert scheduler.tasks == []

        store.update_field("demographics.age", "9")
        scheduler.advance(1)
        assert len(scheduler.tasks) == 1

        await scheduler.run_tasks()
        assert methods(backend) == ["POST"]

    async def test_phase_change_schedules_save(self, registry, backend, mirror, scheduler, clock, tmp_path):
        store = self.autosave_store(registry, mirror, scheduler, clock, tmp_path)
        store.set_current_phase("vitals")
        scheduler.advance(2)
        await scheduler.run_tasks()

        assert backend.drafts["1"]["currentPhase"] == "vitals"

    async def test_clear_form_cancels_pending_save(self, registry, backend, mirror, scheduler, clock, tmp_path):
        store = self.autosave_store(registry, mirror, scheduler, clock, tmp_path)
        store.update_field("demographics.age", "50")

        store.clear_form()
        scheduler.advance(3)
        await scheduler.run_tasks()

        assert backend.requests == []
        assert backend.drafts == {}
        assert mirror.latest() is None
