"""
GrievanceService tests: intake, lookups, lifecycle updates, deletion and stats.
"""

from datetime import timedelta

import pytest

from src.config import GrievanceCategory, GrievancePriority, GrievanceStatus
from src.core import (
    InvalidStatusTransitionException,
    ResourceNotFoundException,
    ValidationException,
)
from src.grievances.application import GrievanceService
from src.grievances.domain import StatusTransitionPolicy
from src.grievances.infrastructure import FallbackGrievanceStore, StorageSource

from tests.conftest import FIXED_NOW, VALID_SUBMISSION, FlakyStore

pytestmark = pytest.mark.asyncio


# ═══════════════════════════════════════════════════════════════════════════════
# CREATE
# ═══════════════════════════════════════════════════════════════════════════════

class TestCreate:
    async def test_create_classifies_description(self, service):
        grievance = await service.create(VALID_SUBMISSION)

        assert grievance.grievance_id.startswith("grv_")
        assert grievance.category == GrievanceCategory.WATER_SUPPLY
        assert grievance.priority == GrievancePriority.HIGH
        assert grievance.location == "Sector 15 Market"
        assert grievance.confidence == pytest.approx(0.85)
        assert grievance.status == GrievanceStatus.PENDING
        assert grievance.admin_remarks == ""
        assert grievance.citizen_email == "rajesh@example.com"

    async def test_timestamps_start_equal(self, service):
        grievance = await service.create(VALID_SUBMISSION)
        assert grievance.created_at == grievance.updated_at == FIXED_NOW

    async def test_title_defaults_to_description_prefix(self, service):
        grievance = await service.create(VALID_SUBMISSION)
        assert grievance.title == VALID_SUBMISSION["description"][:50]

    async def test_explicit_title_kept(self, service):
        grievance = await service.create({**VALID_SUBMISSION, "title": "Pipeline leak"})
        assert grievance.title == "Pipeline leak"

    async def test_explicit_classification_is_kept(self, service):
        grievance = await service.create({
            **VALID_SUBMISSION,
            "category": "Sanitation",
            "priority": "Low",
            "location": "Block C",
        })
        assert grievance.category == GrievanceCategory.SANITATION
        assert grievance.priority == GrievancePriority.LOW
        assert grievance.location == "Block C"
        assert grievance.confidence == 1.0

    async def test_classifier_fills_only_missing_fields(self, service):
        grievance = await service.create({**VALID_SUBMISSION, "category": "Sanitation"})
        assert grievance.category == GrievanceCategory.SANITATION
        assert grievance.priority == GrievancePriority.HIGH
        assert grievance.location == "Sector 15 Market"
        assert grievance.confidence == pytest.approx(0.85)

    async def test_short_description_rejected(self, service, memory_store):
        with pytest.raises(ValidationException, match="at least 20 characters"):
            await service.create({**VALID_SUBMISSION, "description": "Water leak"})
        assert len(memory_store) == 0

    async def test_padding_does_not_count_towards_length(self, service, memory_store):
        with pytest.raises(ValidationException):
            await service.create({**VALID_SUBMISSION, "description": "  water leak       " + " " * 20})
        assert len(memory_store) == 0

    @pytest.mark.parametrize("missing", ["citizen_name", "citizen_phone", "description"])
    async def test_missing_required_field_rejected(self, service, memory_store, missing):
        fields = {k: v for k, v in VALID_SUBMISSION.items() if k != missing}
        with pytest.raises(ValidationException, match=missing):
            await service.create(fields)
        assert len(memory_store) == 0

    async def test_blank_required_field_rejected(self, service):
        with pytest.raises(ValidationException, match="citizen_name"):
            await service.create({**VALID_SUBMISSION, "citizen_name": "   "})

    async def test_invalid_category_rejected(self, service, memory_store):
        with pytest.raises(ValidationException, match="Invalid category"):
            await service.create({**VALID_SUBMISSION, "category": "Parks"})
        assert len(memory_store) == 0

    async def test_min_description_length_is_configurable(self, memory_store, clock):
        service = GrievanceService(memory_store, clock=clock, min_description_length=5)
        grievance = await service.create({**VALID_SUBMISSION, "description": "No water"})
        assert grievance.category == GrievanceCategory.WATER_SUPPLY


# ═══════════════════════════════════════════════════════════════════════════════
# READ
# ═══════════════════════════════════════════════════════════════════════════════

class TestRead:
    async def test_round_trip(self, service):
        created = await service.create(VALID_SUBMISSION)
        assert await service.get_by_id(created.grievance_id) == created

    async def test_get_unknown_raises(self, service):
        with pytest.raises(ResourceNotFoundException, match="grv_missing"):
            await service.get_by_id("grv_missing")

    async def test_track_by_ticket_number_normalizes_input(self, service):
        created = await service.create(VALID_SUBMISSION)
        found = await service.get_by_ticket_number(f"  {created.ticket_number.lower()} ")
        assert found.grievance_id == created.grievance_id

    async def test_track_unknown_ticket_raises(self, service):
        with pytest.raises(ResourceNotFoundException):
            await service.get_by_ticket_number("JS00000000")

    async def test_list_in_insertion_order(self, service):
        first = await service.create(VALID_SUBMISSION)
        second = await service.create({**VALID_SUBMISSION, "description": "Garbage piling up behind the market for days"})
        assert [g.grievance_id for g in await service.list()] == [first.grievance_id, second.grievance_id]

    async def test_list_filters(self, service):
        water = await service.create(VALID_SUBMISSION)
        garbage = await service.create({
            **VALID_SUBMISSION,
            "citizen_name": "Anita Sharma",
            "description": "Garbage piling up behind the market for days",
        })
        await service.update(garbage.grievance_id, {"status": "Resolved"})

        assert [g.grievance_id for g in await service.list(status="Resolved")] == [garbage.grievance_id]
        assert [g.grievance_id for g in await service.list(priority="High")] == [water.grievance_id]
        assert [g.grievance_id for g in await service.list(category="Sanitation")] == [garbage.grievance_id]
        assert [g.grievance_id for g in await service.list(q="anita")] == [garbage.grievance_id]
        assert [g.grievance_id for g in await service.list(q="sector 15")] == [water.grievance_id]
        assert await service.list(status="Rejected") == []

    async def test_search_matches_ticket_number(self, service):
        created = await service.create(VALID_SUBMISSION)
        results = await service.list(q=created.ticket_number.lower())
        assert [g.grievance_id for g in results] == [created.grievance_id]


# ═══════════════════════════════════════════════════════════════════════════════
# UPDATE
# ═══════════════════════════════════════════════════════════════════════════════

class TestUpdate:
    async def test_update_merges_fields(self, service):
        created = await service.create(VALID_SUBMISSION)
        updated = await service.update(created.grievance_id, {
            "status": "In Progress",
            "admin_remarks": "Crew dispatched",
        })

        assert updated.status == GrievanceStatus.IN_PROGRESS
        assert updated.admin_remarks == "Crew dispatched"
        assert updated.description == created.description
        assert updated.created_at == created.created_at
        assert updated.updated_at > created.updated_at
        assert await service.get_by_id(created.grievance_id) == updated

    async def test_repeated_update_is_idempotent_but_refreshes_timestamp(self, service):
        created = await service.create(VALID_SUBMISSION)
        once = await service.update(created.grievance_id, {"status": "Resolved"})
        twice = await service.update(created.grievance_id, {"status": "Resolved"})

        assert once.status == twice.status == GrievanceStatus.RESOLVED
        assert twice.updated_at > once.updated_at

    async def test_update_unknown_leaves_store_unchanged(self, service, memory_store):
        created = await service.create(VALID_SUBMISSION)
        with pytest.raises(ResourceNotFoundException):
            await service.update("grv_missing", {"status": "Resolved"})

        assert len(memory_store) == 1
        assert await service.get_by_id(created.grievance_id) == created

    async def test_immutable_fields_rejected(self, service):
        created = await service.create(VALID_SUBMISSION)
        with pytest.raises(ValidationException, match="ticket_number"):
            await service.update(created.grievance_id, {"ticket_number": "JS99999999"})

    async def test_invalid_status_rejected(self, service):
        created = await service.create(VALID_SUBMISSION)
        with pytest.raises(ValidationException, match="Invalid status"):
            await service.update(created.grievance_id, {"status": "Closed"})

    async def test_none_values_are_ignored(self, service):
        created = await service.create(VALID_SUBMISSION)
        updated = await service.update(created.grievance_id, {"status": "In Progress", "title": None})
        assert updated.title == created.title

    async def test_admin_can_correct_classification(self, service):
        created = await service.create(VALID_SUBMISSION)
        updated = await service.update(created.grievance_id, {
            "status": "Pending",
            "category": "Roads & Transport",
            "priority": "Low",
        })
        assert updated.category == GrievanceCategory.ROADS_TRANSPORT
        assert updated.priority == GrievancePriority.LOW

    async def test_updated_at_never_precedes_created_at(self, memory_store, clock):
        service = GrievanceService(memory_store, clock=clock)
        created = await service.create(VALID_SUBMISSION)
        clock.now = FIXED_NOW - timedelta(days=1)

        updated = await service.update(created.grievance_id, {"status": "In Progress"})
        assert updated.updated_at == created.created_at


# ═══════════════════════════════════════════════════════════════════════════════
# STATUS WORKFLOW
# ═══════════════════════════════════════════════════════════════════════════════

class TestStatusWorkflow:
    async def test_permissive_allows_reopening(self, service):
        created = await service.create(VALID_SUBMISSION)
        await service.update(created.grievance_id, {"status": "Resolved"})
        reopened = await service.update(created.grievance_id, {"status": "Pending"})
        assert reopened.status == GrievanceStatus.PENDING

    async def test_strict_follows_workflow(self, memory_store, clock):
        service = GrievanceService(
            memory_store, clock=clock, transition_policy=StatusTransitionPolicy(strict=True)
        )
        created = await service.create(VALID_SUBMISSION)

        await service.update(created.grievance_id, {"status": "In Progress"})
        resolved = await service.update(created.grievance_id, {"status": "Resolved"})
        assert resolved.status == GrievanceStatus.RESOLVED

        with pytest.raises(InvalidStatusTransitionException):
            await service.update(created.grievance_id, {"status": "Pending"})

    async def test_strict_rejects_skipping_progress(self, memory_store, clock):
        service = GrievanceService(
            memory_store, clock=clock, transition_policy=StatusTransitionPolicy(strict=True)
        )
        created = await service.create(VALID_SUBMISSION)

        with pytest.raises(InvalidStatusTransitionException) as exc_info:
            await service.update(created.grievance_id, {"status": "Resolved"})

        assert exc_info.value.status_code == 409
        assert (await service.get_by_id(created.grievance_id)).status == GrievanceStatus.PENDING

    async def test_strict_allows_same_status_and_remarks(self, memory_store, clock):
        service = GrievanceService(
            memory_store, clock=clock, transition_policy=StatusTransitionPolicy(strict=True)
        )
        created = await service.create(VALID_SUBMISSION)
        updated = await service.update(created.grievance_id, {"status": "Pending", "admin_remarks": "Seen"})
        assert updated.admin_remarks == "Seen"

    async def test_policy_tables(self):
        strict = StatusTransitionPolicy(strict=True)
        assert strict.allowed_from(GrievanceStatus.PENDING) == {
            GrievanceStatus.PENDING, GrievanceStatus.IN_PROGRESS, GrievanceStatus.REJECTED
        }
        assert strict.allowed_from(GrievanceStatus.REJECTED) == {GrievanceStatus.REJECTED}
        assert StatusTransitionPolicy().allowed_from(GrievanceStatus.RESOLVED) == set(GrievanceStatus)


# ═══════════════════════════════════════════════════════════════════════════════
# DELETE
# ═══════════════════════════════════════════════════════════════════════════════

class TestDelete:
    async def test_delete_then_get_is_not_found(self, service):
        created = await service.create(VALID_SUBMISSION)
        result = await service.delete(created.grievance_id)

        assert result == {"message": "Grievance deleted successfully"}
        with pytest.raises(ResourceNotFoundException):
            await service.get_by_id(created.grievance_id)

    async def test_delete_unknown_raises(self, service):
        with pytest.raises(ResourceNotFoundException):
            await service.delete("grv_missing")


# ═══════════════════════════════════════════════════════════════════════════════
# ANALYZE AND STATS
# ═══════════════════════════════════════════════════════════════════════════════

class TestAnalyzeAndStats:
    async def test_analyze_does_not_persist(self, service, memory_store):
        result = service.analyze("Urgent: water pipe burst near Sector 15 Market")
        assert result.category == GrievanceCategory.WATER_SUPPLY
        assert result.location == "Sector 15 Market"
        assert len(memory_store) == 0

    async def test_stats_on_empty_store(self, service):
        stats = await service.stats()
        assert stats["total"] == 0
        assert stats["high_priority"] == 0
        assert set(stats["by_status"]) == {s.value for s in GrievanceStatus}
        assert all(count == 0 for count in stats["by_category"].values())

    async def test_stats_counts(self, service):
        water = await service.create(VALID_SUBMISSION)
        await service.create({**VALID_SUBMISSION, "description": "Garbage piling up behind the market for days"})
        await service.update(water.grievance_id, {"status": "In Progress"})

        stats = await service.stats()
        assert stats["total"] == 2
        assert stats["high_priority"] == 1
        assert stats["by_status"]["In Progress"] == 1
        assert stats["by_status"]["Pending"] == 1
        assert stats["by_priority"] == {"High": 1, "Medium": 1, "Low": 0}
        assert stats["by_category"]["Water Supply"] == 1
        assert stats["by_category"]["Sanitation"] == 1


# ═══════════════════════════════════════════════════════════════════════════════
# FALLBACK
# ═══════════════════════════════════════════════════════════════════════════════

class TestFallback:
    async def test_create_succeeds_when_primary_write_fails(self, clock):
        primary = FlakyStore(available=False)
        store = FallbackGrievanceStore(primary)
        service = GrievanceService(store, clock=clock)

        created = await service.create(VALID_SUBMISSION)

        assert await service.get_by_id(created.grievance_id) == created
        assert await store.fallback.get(created.grievance_id) == created
        assert store.fallback_events >= 2
        assert store.last_source == StorageSource.FALLBACK

    async def test_update_visible_when_only_primary_writes_fail(self, clock):
        primary = FlakyStore()
        store = FallbackGrievanceStore(primary)
        service = GrievanceService(store, clock=clock)
        created = await service.create(VALID_SUBMISSION)

        primary.writable = False
        updated = await service.update(created.grievance_id, {"status": "Resolved", "admin_remarks": "Fixed"})

        fetched = await service.get_by_id(created.grievance_id)
        assert fetched.status == updated.status == "Resolved"
        assert (await service.get_by_ticket_number(created.ticket_number)).status == "Resolved"
        assert [g.status for g in await service.list()] == ["Resolved"]

        again = await service.update(created.grievance_id, {"status": "Resolved"})
        assert again.admin_remarks == "Fixed"
