"""Unit tests for matching_service projections."""

import pytest

from worklink.domain.task import GeoPoint, TaskCategory, TaskStatus
from worklink.services.matching_service import (
    ProviderView,
    TaskBucket,
    WorkerView,
    dashboard_view_for,
    discoverable_tasks,
    my_tasks,
    newest_first,
    pending_applications,
    stat_summary,
    with_distances,
)
from worklink.services.task_lifecycle import Decision, advance, apply, decide


@pytest.fixture
def worker(make_worker):
    return make_worker("w1", "Alex Johnson")


@pytest.fixture
def other_worker(make_worker):
    return make_worker("w2", "Maria Garcia")


@pytest.fixture
def provider(make_provider):
    return make_provider("p1", "Sarah Connor")


@pytest.fixture
def board(make_task, worker, other_worker):
    """A mix of tasks in every status, involving w1 in different ways."""
    open_task = make_task("open", title="Fix leaking kitchen tap", category=TaskCategory.REPAIR)
    applied = apply(make_task("applied", title="Garden cleanup"), worker)
    other_applied = apply(make_task("other-applied", title="Deliver groceries"), other_worker)
    hired = decide(apply(make_task("hired", title="Move sofa"), worker), "w1", Decision.ACCEPT)
    on_the_way = advance(
        decide(apply(make_task("on-the-way", title="Paint fence"), worker), "w1", Decision.ACCEPT),
        TaskStatus.ON_THE_WAY,
    )
    ongoing = advance(hired.model_copy(update={"id": "ongoing"}), TaskStatus.IN_PROGRESS)
    done = advance(ongoing.model_copy(update={"id": "done"}), TaskStatus.COMPLETED)
    lost = decide(apply(apply(make_task("lost"), worker), other_worker), "w2", Decision.ACCEPT)
    cancelled = advance(make_task("cancelled"), TaskStatus.CANCELLED)
    foreign = make_task("foreign", provider_id="p2", provider_name="Bob")
    return [open_task, applied, other_applied, hired, on_the_way, ongoing, done, lost, cancelled, foreign]


def _ids(tasks):
    return [task.id for task in tasks]


@pytest.mark.unit
class TestDiscoverableTasks:
    """Tests for discoverable_tasks."""

    def test_only_accepting_tasks(self, board):
        result = discoverable_tasks(board)

        assert _ids(result) == ["open", "applied", "other-applied", "foreign"]
        assert all(t.status in (TaskStatus.OPEN, TaskStatus.APPLIED) for t in result)

    def test_filters_by_category(self, board):
        assert _ids(discoverable_tasks(board, category=TaskCategory.REPAIR)) == ["open"]

    def test_search_is_case_insensitive_substring_of_title(self, board):
        assert _ids(discoverable_tasks(board, search_text="GARDEN")) == ["applied"]
        assert _ids(discoverable_tasks(board, search_text="  tap ")) == ["open"]

    def test_blank_search_matches_everything(self, board):
        assert discoverable_tasks(board, search_text="   ") == discoverable_tasks(board)

    def test_no_match_returns_empty(self, board):
        assert discoverable_tasks(board, category=TaskCategory.CLEANING, search_text="sofa") == []

    def test_newest_first(self, make_task):
        old = make_task("old", created_at=1_000)
        new = make_task("new", created_at=3_000)
        middle = make_task("middle", created_at=2_000)

        assert _ids(newest_first([old, new, middle])) == ["new", "middle", "old"]


@pytest.mark.unit
class TestWithDistances:
    """Tests for with_distances."""

    def test_adds_distance_without_changing_input(self, make_task):
        task = make_task(location=GeoPoint(lat=40.7628, lng=-74.0060))

        [enriched] = with_distances([task], origin=GeoPoint(lat=40.7128, lng=-74.0060))

        assert enriched.distance_km == pytest.approx(5.56, abs=0.01)
        assert task.distance_km is None

    def test_distance_is_not_persisted(self, make_task):
        [enriched] = with_distances([make_task()], origin=GeoPoint(lat=0.0, lng=0.0))

        assert "distance_km" not in enriched.model_dump()


@pytest.mark.unit
class TestWorkerBuckets:
    """Tests for the worker's My Tasks buckets."""

    def test_assigned_bucket(self, board, worker):
        assert _ids(my_tasks(board, worker, TaskBucket.ASSIGNED)) == ["applied", "hired", "on-the-way"]

    def test_rejected_application_is_hidden(self, board, worker):
        assert "lost" not in _ids(my_tasks(board, worker, TaskBucket.ASSIGNED))

    def test_ongoing_bucket(self, board, worker):
        assert _ids(my_tasks(board, worker, TaskBucket.ONGOING)) == ["ongoing"]

    def test_completed_bucket(self, board, worker):
        assert _ids(my_tasks(board, worker, TaskBucket.COMPLETED)) == ["done"]

    def test_other_worker_sees_own_tasks(self, board, other_worker):
        assert _ids(my_tasks(board, other_worker, TaskBucket.ASSIGNED)) == ["other-applied", "lost"]


@pytest.mark.unit
class TestProviderBuckets:
    """Tests for the provider's My Tasks buckets."""

    def test_assigned_bucket_includes_hiring_tasks(self, board, provider):
        assert _ids(my_tasks(board, provider, TaskBucket.ASSIGNED)) == [
            "open",
            "applied",
            "other-applied",
            "hired",
            "on-the-way",
            "lost",
        ]

    def test_ongoing_and_completed(self, board, provider):
        assert _ids(my_tasks(board, provider, TaskBucket.ONGOING)) == ["ongoing"]
        assert _ids(my_tasks(board, provider, TaskBucket.COMPLETED)) == ["done"]

    def test_other_providers_tasks_are_excluded(self, board, provider):
        every_bucket = [t for bucket in TaskBucket for t in my_tasks(board, provider, bucket)]

        assert "foreign" not in _ids(every_bucket)


@pytest.mark.unit
class TestStatSummary:
    """Tests for dashboard counters."""

    def test_worker_stats(self, board, worker):
        stats = stat_summary(board, worker)

        assert stats.active == 3  # hired, on-the-way, ongoing
        assert stats.completed == 1
        assert stats.open == 1  # applied
        assert stats.rating == 4.8

    def test_provider_stats(self, board, provider):
        stats = stat_summary(board, provider)

        assert stats.active == 4  # hired, on-the-way, ongoing, lost
        assert stats.completed == 1
        assert stats.open == 3  # open, applied, other-applied
        assert stats.rating is None

    def test_stats_are_recomputed_from_input(self, board, worker):
        before = stat_summary(board, worker)
        after = stat_summary([t for t in board if t.id != "done"], worker)

        assert before.completed == 1
        assert after.completed == 0
        assert stat_summary(board, worker) == before

    def test_empty_collection(self, worker):
        stats = stat_summary([], worker)

        assert (stats.active, stats.completed, stats.open) == (0, 0, 0)


@pytest.mark.unit
class TestPendingApplications:
    """Tests for pending_applications."""

    def test_lists_pending_applicants_across_tasks(self, board, provider):
        pending = pending_applications(board, provider)

        assert [(p.task_id, p.applicant.worker_id) for p in pending] == [
            ("applied", "w1"),
            ("other-applied", "w2"),
        ]
        assert pending[0].task_title == "Garden cleanup"

    def test_cancelled_task_applicants_are_not_actionable(self, make_task, worker, provider):
        cancelled = advance(apply(make_task("t1"), worker), TaskStatus.CANCELLED)
        stale = apply(make_task("t2"), worker).model_copy(update={"status": TaskStatus.CANCELLED})

        assert pending_applications([cancelled, stale], provider) == []

    def test_other_provider_has_none(self, board, make_provider):
        assert pending_applications(board, make_provider("p2", "Bob")) == []


@pytest.mark.unit
def test_view_is_chosen_by_role(worker, provider):
    assert isinstance(dashboard_view_for(worker), WorkerView)
    assert isinstance(dashboard_view_for(provider), ProviderView)
