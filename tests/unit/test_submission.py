"""
Unit Tests for the Final Submission Workflow
"""
import pytest

from mear.config import Settings
from mear.core.store import FormStore
from mear.services import SubmissionService, SubmitOutcome


@pytest.fixture
def service(registry, mirror) -> SubmissionService:
    return SubmissionService(registry, mirror)


class TestSubmission:
    """validate → submit → clear draft"""

    async def test_invalid_snapshot_makes_no_request(self, service, store, backend):
        store.set_data({"demographics": {"age": "40"}})
        result = await service.submit(store)

        assert result.outcome == SubmitOutcome.INVALID
        assert result.saved is False
        assert {e["path"] for e in result.errors} >= {"comorbidities", "gcs", "indication"}
        assert backend.requests == []
        assert store.is_complete is False

    async def test_success_clears_everything(self, service, store, backend, mirror, navigation, complete_snapshot):
        store.set_data(complete_snapshot)
        await store.save_draft()
        store.start_timer()

        result = await service.submit(store)

        assert result.outcome == SubmitOutcome.SUCCEEDED
        assert result.case_id == "case-1"
        assert result.to_dict()["caseId"] == "case-1"
        assert backend.cases["case-1"]["demographics"]["hospitalNo"] == "HN-1001"
        assert backend.drafts == {}
        assert mirror.read(draft_id="1") is None
        assert store.is_complete is True
        assert store.timer_active is False
        assert navigation.url == "/cases"

    async def test_unsaved_draft_deleted_by_hospital_no(self, service, store, backend, complete_snapshot):
        backend.drafts["5"] = {"id": "5", "form": {}, "hospitalNo": "HN-1001"}
        store.set_data(complete_snapshot)

        result = await service.submit(store)

        assert result.outcome == SubmitOutcome.SUCCEEDED
        delete = [r for r in backend.requests if r.method == "DELETE"][0]
        assert dict(delete.url.params) == {"hospitalNo": "HN-1001"}
        assert backend.drafts == {}

    async def test_no_backend_draft_counts_as_cleared(self, service, store, complete_snapshot):
        store.set_data(complete_snapshot)
        result = await service.submit(store)
        assert result.outcome == SubmitOutcome.SUCCEEDED

    async def test_draft_delete_failure_is_distinguished(self, service, store, backend, complete_snapshot):
        store.set_data(complete_snapshot)
        await store.save_draft()
        backend.fail_delete = True

        result = await service.submit(store)

        assert result.outcome == SubmitOutcome.SAVED_DRAFT_NOT_CLEARED
        assert result.saved is True
        assert result.case_id == "case-1"
        assert store.is_complete is True

    async def test_submit_failure(self, service, store, backend, navigation, complete_snapshot):
        store.set_data(complete_snapshot)
        await store.save_draft()
        backend.fail_submit = True

        result = await service.submit(store)

        assert result.outcome == SubmitOutcome.FAILED
        assert result.saved is False
        assert "1" in backend.drafts
        assert store.is_complete is False
        assert navigation.get("draftId") == "1"


@pytest.fixture
def autosave_store(registry, mirror, navigation, scheduler, clock, tmp_path) -> FormStore:
    return FormStore(
        registry=registry,
        mirror=mirror,
        navigation=navigation,
        scheduler=scheduler,
        clock=clock,
        settings=Settings(draft_cache_dir=str(tmp_path / "d"), autosave_enabled=True),
    )


class TestSubmissionWithAutoSave:
    """A debounced save pending at submit time must not outlive the submission."""

    async def test_pending_save_does_not_recreate_draft(self, service, autosave_store, backend, mirror, scheduler, complete_snapshot):
        store = autosave_store
        store.set_data(complete_snapshot)
        await store.save_draft()
        store.update_field("demographics.age", "46")

        result = await service.submit(store)
        assert result.outcome == SubmitOutcome.SUCCEEDED

        scheduler.advance(3)
        await scheduler.run_tasks()

        assert backend.drafts == {}
        assert mirror.read(draft_id="1") is None
        assert store.is_draft is False
        assert [r.method for r in backend.requests if r.url.path == "/api/draft"] == ["POST", "DELETE"]

    async def test_edits_after_submit_are_not_saved(self, service, autosave_store, backend, scheduler, complete_snapshot):
        store = autosave_store
        store.set_data(complete_snapshot)
        await service.submit(store)
        sent = len(backend.requests)

        store.update_field("demographics.age", "47")
        scheduler.advance(15)
        await scheduler.run_tasks()

        assert await store.save_draft() is False
        assert len(backend.requests) == sent
        assert backend.drafts == {}

    async def test_failed_submit_resumes_auto_save(self, service, autosave_store, backend, scheduler, complete_snapshot):
        store = autosave_store
        store.set_data(complete_snapshot)
        await store.save_draft()
        store.update_field("demographics.age", "46")
        backend.fail_submit = True

        result = await service.submit(store)
        assert result.outcome == SubmitOutcome.FAILED

        scheduler.advance(3)
        await scheduler.run_tasks()

        assert backend.drafts["1"]["form"]["demographics"]["age"] == "46"
        assert store.is_draft is False
