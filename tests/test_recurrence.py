"""Tests for the recurrence engine (next due date, next instance)."""

from datetime import datetime, timedelta

import pytest

from arise.engine.recurrence import (
    compute_next_occurrence,
    initial_next_due,
    materialize_next_instance,
)
from arise.errors import ValidationError
from arise.models.task import RecurrenceType, RecurringDescriptor, Task, TaskPriority
from arise.models.task_factory import create_task_base

# 2026-10-14 is a Wednesday
WEDNESDAY = datetime(2026, 10, 14, 10, 0)


def _weekly(days):
    return RecurringDescriptor(type=RecurrenceType.WEEKLY, days=days)


class TestComputeNextOccurrence:

    def test_daily_adds_exactly_24_hours(self):
        ref = datetime(2026, 3, 28, 23, 30)
        nxt = compute_next_occurrence(RecurringDescriptor(type=RecurrenceType.DAILY), ref)
        assert nxt - ref == timedelta(hours=24)

    def test_weekly_wraps_to_following_week(self):
        # Mon/Wed, reference on a Wednesday -> following Monday
        nxt = compute_next_occurrence(_weekly([1, 3]), WEDNESDAY)
        assert nxt == datetime(2026, 10, 19, 10, 0)
        assert nxt.weekday() == 0

    def test_weekly_advances_within_same_week(self):
        monday = datetime(2026, 10, 12, 7, 15)
        nxt = compute_next_occurrence(_weekly([1, 3]), monday)
        assert nxt == datetime(2026, 10, 14, 7, 15)

    def test_weekly_from_sunday(self):
        sunday = datetime(2026, 10, 18, 9, 0)
        assert compute_next_occurrence(_weekly([3, 1]), sunday) == datetime(2026, 10, 19, 9, 0)

    def test_weekly_saturday_to_sunday(self):
        saturday = datetime(2026, 10, 17, 20, 0)
        assert compute_next_occurrence(_weekly([0]), saturday) == datetime(2026, 10, 18, 20, 0)

    def test_weekly_single_day_same_weekday_is_a_week_later(self):
        assert compute_next_occurrence(_weekly([3]), WEDNESDAY) == WEDNESDAY + timedelta(days=7)

    @pytest.mark.parametrize("days", [None, []])
    def test_weekly_without_days_adds_seven_days(self, days):
        nxt = compute_next_occurrence(RecurringDescriptor(type=RecurrenceType.WEEKLY, days=days), WEDNESDAY)
        assert nxt == WEDNESDAY + timedelta(days=7)

    @pytest.mark.parametrize(
        "ref,expected",
        [
            (datetime(2026, 1, 15, 8, 0), datetime(2026, 2, 15, 8, 0)),
            (datetime(2026, 12, 15, 8, 0), datetime(2027, 1, 15, 8, 0)),
            (datetime(2026, 1, 31, 8, 0), datetime(2026, 2, 28, 8, 0)),
            (datetime(2028, 1, 31, 8, 0), datetime(2028, 2, 29, 8, 0)),
            (datetime(2026, 3, 31, 8, 0), datetime(2026, 4, 30, 8, 0)),
        ],
    )
    def test_monthly_clamps_to_end_of_month(self, ref, expected):
        nxt = compute_next_occurrence(RecurringDescriptor(type=RecurrenceType.MONTHLY), ref)
        assert nxt == expected

    def test_monthly_anchor_day_survives_short_months(self):
        recurring = RecurringDescriptor(type=RecurrenceType.MONTHLY, day_of_month=31)
        due = datetime(2026, 1, 31, 8, 0)
        seen = []
        for _ in range(4):
            due = compute_next_occurrence(recurring, due)
            seen.append(due.date())

        assert [d.isoformat() for d in seen] == ["2026-02-28", "2026-03-31", "2026-04-30", "2026-05-31"]

    def test_monthly_anchor_day_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            RecurringDescriptor(type=RecurrenceType.MONTHLY, day_of_month=32)

    def test_custom_adds_interval_days(self):
        recurring = RecurringDescriptor(type=RecurrenceType.CUSTOM, interval=3)
        assert compute_next_occurrence(recurring, WEDNESDAY) == WEDNESDAY + timedelta(days=3)

    def test_custom_without_interval_returns_none(self):
        recurring = RecurringDescriptor.model_construct(type="custom", interval=None, days=None, next_due=None)
        assert compute_next_occurrence(recurring, WEDNESDAY) is None

    def test_initial_next_due_is_first_occurrence_after_now(self):
        recurring = RecurringDescriptor(type=RecurrenceType.DAILY)
        assert initial_next_due(recurring, WEDNESDAY) == WEDNESDAY + timedelta(days=1)


class TestRecurringDescriptor:

    def test_custom_requires_interval(self):
        with pytest.raises(ValueError, match="interval"):
            RecurringDescriptor(type=RecurrenceType.CUSTOM)

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            RecurringDescriptor(type=RecurrenceType.CUSTOM, interval=0)

    def test_days_out_of_range_rejected(self):
        with pytest.raises(ValueError, match="0-6"):
            RecurringDescriptor(type=RecurrenceType.WEEKLY, days=[1, 7])

    def test_days_deduplicated_and_sorted(self):
        assert RecurringDescriptor(type=RecurrenceType.WEEKLY, days=[5, 1, 5, 3]).days == [1, 3, 5]


class TestMaterializeNextInstance:

    @pytest.fixture
    def completed_daily(self, sample_task_base):
        due = WEDNESDAY - timedelta(hours=1)
        return Task(
            **{
                **sample_task_base,
                "name": "Push-ups",
                "priority": TaskPriority.HIGH,
                "completed": True,
                "completed_at": due,
                "recurring": RecurringDescriptor(type=RecurrenceType.DAILY, next_due=due),
            }
        )

    def test_spawns_pending_instance_once_due(self, completed_daily):
        nxt = materialize_next_instance(completed_daily, WEDNESDAY)

        assert nxt is not None
        assert nxt.id != completed_daily.id
        assert nxt.completed is False
        assert nxt.completed_at is None
        assert nxt.created_at == WEDNESDAY
        assert nxt.name == "Push-ups"
        assert nxt.description == completed_daily.description
        assert nxt.priority == TaskPriority.HIGH
        assert nxt.user_id == completed_daily.user_id
        assert nxt.lineage_id == completed_daily.lineage_id
        assert nxt.recurring.type == RecurrenceType.DAILY
        assert nxt.recurring.next_due == completed_daily.recurring.next_due + timedelta(hours=24)

    def test_original_instance_is_untouched(self, completed_daily):
        before = completed_daily.model_copy(deep=True)
        materialize_next_instance(completed_daily, WEDNESDAY)
        assert completed_daily == before

    def test_due_exactly_now_fires(self, completed_daily):
        now = completed_daily.recurring.next_due
        assert materialize_next_instance(completed_daily, now) is not None

    def test_future_due_does_not_fire(self, completed_daily):
        early = completed_daily.recurring.next_due - timedelta(minutes=1)
        assert materialize_next_instance(completed_daily, early) is None

    def test_fires_on_later_evaluation(self, completed_daily):
        due = completed_daily.recurring.next_due
        assert materialize_next_instance(completed_daily, due - timedelta(hours=5)) is None
        assert materialize_next_instance(completed_daily, due + timedelta(hours=5)) is not None

    def test_pending_task_does_not_fire(self, completed_daily):
        pending = completed_daily.model_copy(update={"completed": False, "completed_at": None})
        assert materialize_next_instance(pending, WEDNESDAY) is None

    def test_missing_next_due_does_not_fire(self, completed_daily):
        recurring = completed_daily.recurring.model_copy(update={"next_due": None})
        task = completed_daily.model_copy(update={"recurring": recurring})
        assert materialize_next_instance(task, WEDNESDAY) is None

    def test_non_recurring_does_not_fire(self, sample_task_base):
        task = Task(**{**sample_task_base, "completed": True})
        assert materialize_next_instance(task, WEDNESDAY) is None

    def test_lineage_defaults_to_task_id(self, completed_daily):
        task = completed_daily.model_copy(update={"lineage_id": None})
        assert materialize_next_instance(task, WEDNESDAY).lineage_id == task.id

    def test_malformed_descriptor_fails_fast(self, completed_daily):
        due = WEDNESDAY - timedelta(days=1)
        recurring = RecurringDescriptor.model_construct(type="custom", interval=None, days=None, next_due=due)
        task = completed_daily.model_copy(update={"recurring": recurring})
        with pytest.raises(ValidationError):
            materialize_next_instance(task, WEDNESDAY)


class TestTaskFactory:

    def test_new_task_starts_its_own_lineage(self, test_user_id):
        task = create_task_base(user_id=test_user_id, name="Read", now=WEDNESDAY)

        assert task.lineage_id == task.id
        assert task.completed is False
        assert task.priority == TaskPriority.NORMAL
        assert task.created_at == WEDNESDAY
        assert task.recurring is None

    def test_recurring_task_gets_first_due_date(self, test_user_id):
        task = create_task_base(
            user_id=test_user_id,
            name="Gym",
            recurring=_weekly([1, 3]),
            now=WEDNESDAY,
        )
        assert task.recurring.next_due == datetime(2026, 10, 19, 10, 0)

    def test_monthly_task_anchors_on_creation_day(self, test_user_id):
        task = create_task_base(
            user_id=test_user_id,
            name="Rent",
            recurring=RecurringDescriptor(type=RecurrenceType.MONTHLY),
            now=datetime(2026, 1, 31, 9, 0),
        )

        assert task.recurring.day_of_month == 31
        assert task.recurring.next_due == datetime(2026, 2, 28, 9, 0)
        assert compute_next_occurrence(task.recurring, task.recurring.next_due) == datetime(2026, 3, 31, 9, 0)

    def test_monthly_task_anchors_on_explicit_due_day(self, test_user_id):
        task = create_task_base(
            user_id=test_user_id,
            name="Rent",
            recurring=RecurringDescriptor(type=RecurrenceType.MONTHLY, next_due=datetime(2026, 11, 30, 9, 0)),
            now=WEDNESDAY,
        )
        assert task.recurring.day_of_month == 30

    def test_explicit_next_due_is_kept(self, test_user_id):
        due = datetime(2026, 11, 1, 9, 0)
        task = create_task_base(
            user_id=test_user_id,
            name="Bills",
            recurring=RecurringDescriptor(type=RecurrenceType.MONTHLY, next_due=due),
            now=WEDNESDAY,
        )
        assert task.recurring.next_due == due
