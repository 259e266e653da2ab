from datetime import timedelta

import pytest

from conftest import (
    HIGH_STRESS_LOW_SLEEP_LOW_ACTIVITY,
    LOW_EVERYTHING,
    add_completed_interaction,
    add_snapshot,
    make_intervention,
    make_user,
)
from intervention_app.core.exceptions import InternalError, InvalidInputError, NotFoundError
from intervention_app.database.models import UserInteraction
from intervention_app.database.stores import InteractionStore, OpenInteractionConflict
from intervention_app.schemas.schemas import ExerciseCreate, StepCreate
from intervention_app.services.selector import NO_DATA, NONE_APPROPRIATE, NOT_NEEDED, InterventionSelector

LABEL = "low_stress_low_sleep_low_activity"


def test_unknown_user_raises_not_found(selector):
    with pytest.raises(NotFoundError, match="User 999 not found"):
        selector.get_intervention_for_user(999)


def test_no_snapshot_today_means_no_data(db, selector, clock):
    user = make_user(db)
    add_snapshot(db, user, (clock() - timedelta(days=1)).date(), **LOW_EVERYTHING)

    result = selector.get_intervention_for_user(user.id)

    assert result.intervention is None
    assert result.reason == NO_DATA
    assert result.message == "No daily data available for today"


def test_snapshot_dated_later_than_today_is_ignored(db, selector, clock):
    user = make_user(db)
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    add_snapshot(
        db, user, (clock() + timedelta(days=1)).date(),
        stress_level=1.0, sleep_hours=3.0, activity_steps=9000, activity_minutes=60,
    )
    make_intervention(db, "Only", LABEL, priority=1)

    result = selector.get_intervention_for_user(user.id)

    assert result.condition == LABEL
    assert result.interaction_id is not None


def test_only_a_future_snapshot_means_no_data(db, selector, clock):
    user = make_user(db)
    add_snapshot(db, user, (clock() + timedelta(days=1)).date(), **LOW_EVERYTHING)

    assert selector.get_intervention_for_user(user.id).reason == NO_DATA


def test_not_needed_when_classifier_declines(db, selector, clock):
    user = make_user(db)
    add_snapshot(db, user, clock().date(), stress_level=1.0, sleep_hours=3.0, activity_steps=5000, activity_minutes=20)
    make_intervention(db, "Unused", "low_stress_low_sleep_high_activity", priority=5)

    result = selector.get_intervention_for_user(user.id)

    assert result.reason == NOT_NEEDED
    assert result.condition == "low_stress_low_sleep_high_activity"
    assert db.query(UserInteraction).count() == 0


def test_incomplete_snapshot_is_not_needed(db, selector, clock):
    user = make_user(db)
    add_snapshot(db, user, clock().date(), stress_level=1.0, activity_steps=100)

    assert selector.get_intervention_for_user(user.id).reason == NOT_NEEDED


def test_none_appropriate_when_no_active_intervention_matches(db, selector, clock):
    user = make_user(db)
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    make_intervention(db, "Inactive", LABEL, priority=10, is_active=False)
    make_intervention(db, "Other label", "high_stress_low_sleep_low_activity", priority=10)

    result = selector.get_intervention_for_user(user.id)

    assert result.reason == NONE_APPROPRIATE
    assert result.message == "No appropriate intervention found"
    assert db.query(UserInteraction).count() == 0


def test_selects_highest_priority_and_opens_interaction(db, selector, clock):
    user = make_user(db)
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    make_intervention(db, "Low", LABEL, priority=1)
    high = make_intervention(db, "High", LABEL, priority=9)

    result = selector.get_intervention_for_user(user.id)

    assert result.intervention["id"] == high.id
    assert result.condition == LABEL
    assert result.reused is False
    interaction = db.query(UserInteraction).one()
    assert interaction.id == result.interaction_id
    assert interaction.completed is False
    assert interaction.started_at == clock()
    assert interaction.day == clock().date()


def test_equal_priority_ties_go_to_the_earliest_created(db, selector, clock):
    user = make_user(db)
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    first = make_intervention(db, "First", LABEL, priority=5)
    make_intervention(db, "Second", LABEL, priority=5)

    assert selector.get_intervention_for_user(user.id).intervention["id"] == first.id


def test_repeated_calls_same_day_return_same_interaction(db, selector, clock):
    user = make_user(db)
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    make_intervention(db, "Only", LABEL, priority=1)

    first = selector.get_intervention_for_user(user.id)
    clock.advance(hours=3)
    second = selector.get_intervention_for_user(user.id)

    assert second.interaction_id == first.interaction_id
    assert second.reused is True
    assert second.message == "Returning existing active interaction"
    assert second.intervention["exercises"] == first.intervention["exercises"]
    assert db.query(UserInteraction).count() == 1


def test_open_interaction_is_returned_even_if_content_changed(db, selector, clock):
    user = make_user(db)
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    original = make_intervention(db, "Original", LABEL, priority=1)
    first = selector.get_intervention_for_user(user.id)

    make_intervention(db, "Newer and better", LABEL, priority=50)
    second = selector.get_intervention_for_user(user.id)

    assert second.interaction_id == first.interaction_id
    assert second.intervention["id"] == original.id


def test_new_day_opens_a_new_interaction(db, selector, clock):
    user = make_user(db)
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    make_intervention(db, "Only", LABEL, priority=1)
    first = selector.get_intervention_for_user(user.id)

    clock.advance(days=1)
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    second = selector.get_intervention_for_user(user.id)

    assert second.interaction_id != first.interaction_id
    assert second.reused is False


def test_recently_completed_intervention_is_skipped(db, selector, clock):
    user = make_user(db)
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    a = make_intervention(db, "A", LABEL, priority=10)
    b = make_intervention(db, "B", LABEL, priority=5)
    add_completed_interaction(db, user, a, clock() - timedelta(days=2))

    result = selector.get_intervention_for_user(user.id)

    assert result.intervention["id"] == b.id


def test_falls_back_to_highest_priority_when_all_seen_recently(db, selector, clock):
    user = make_user(db)
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    a = make_intervention(db, "A", LABEL, priority=10)
    b = make_intervention(db, "B", LABEL, priority=5)
    add_completed_interaction(db, user, a, clock() - timedelta(days=1))
    add_completed_interaction(db, user, b, clock() - timedelta(days=3))

    result = selector.get_intervention_for_user(user.id)

    assert result.intervention["id"] == a.id
    assert result.interaction_id is not None


def test_completions_outside_the_window_do_not_count(db, selector, clock):
    user = make_user(db)
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    a = make_intervention(db, "A", LABEL, priority=10)
    make_intervention(db, "B", LABEL, priority=5)
    add_completed_interaction(db, user, a, clock() - timedelta(days=8))

    assert selector.get_intervention_for_user(user.id).intervention["id"] == a.id


def test_completion_exactly_at_window_start_counts_as_recent(db, selector, clock, settings):
    user = make_user(db)
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    a = make_intervention(db, "A", LABEL, priority=10)
    b = make_intervention(db, "B", LABEL, priority=5)
    add_completed_interaction(db, user, a, clock() - timedelta(days=settings.RECENCY_WINDOW_DAYS))

    assert selector.get_intervention_for_user(user.id).intervention["id"] == b.id


def test_other_users_history_does_not_count(db, selector, clock):
    user = make_user(db)
    other = make_user(db, email="other@example.com")
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    a = make_intervention(db, "A", LABEL, priority=10)
    make_intervention(db, "B", LABEL, priority=5)
    add_completed_interaction(db, other, a, clock() - timedelta(days=1))

    assert selector.get_intervention_for_user(user.id).intervention["id"] == a.id


def test_completing_then_requesting_again_opens_a_new_interaction(db, selector, clock):
    user = make_user(db)
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    a = make_intervention(db, "A", LABEL, priority=10)
    b = make_intervention(db, "B", LABEL, priority=5)

    first = selector.get_intervention_for_user(user.id)
    completed = selector.complete_intervention(first.interaction_id)
    assert completed.completed is True
    assert completed.completed_at == clock()

    clock.advance(minutes=5)
    second = selector.get_intervention_for_user(user.id)

    assert second.interaction_id != first.interaction_id
    assert first.intervention["id"] == a.id
    # A was just completed so it is inside the recency window
    assert second.intervention["id"] == b.id


def test_complete_unknown_interaction_raises(selector):
    with pytest.raises(NotFoundError):
        selector.complete_intervention(12345)


def test_completing_twice_restamps_completed_at(db, selector, clock):
    user = make_user(db)
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    make_intervention(db, "A", LABEL, priority=10)
    interaction_id = selector.get_intervention_for_user(user.id).interaction_id

    first = selector.complete_intervention(interaction_id).completed_at
    clock.advance(minutes=30)
    second = selector.complete_intervention(interaction_id)

    assert second.completed is True
    assert second.completed_at == first + timedelta(minutes=30)


def test_unique_index_rejects_second_open_interaction(db, stores, clock):
    user = make_user(db)
    intervention = make_intervention(db, "A", LABEL)

    stores.interactions.create_interaction(user.id, intervention.id, clock())
    with pytest.raises(OpenInteractionConflict):
        stores.interactions.create_interaction(user.id, intervention.id, clock())

    assert db.query(UserInteraction).count() == 1


def test_content_tree_is_filtered_ordered_and_localized(db, selector, clock):
    user = make_user(db, language="es")
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    make_intervention(
        db, "Breathing", LABEL, priority=1,
        translations={"es": {"name": "Respiración"}},
        exercises=[
            ExerciseCreate(
                name="Second", order_index=2,
                steps=[
                    StepCreate(type="TEXT_INPUT", order_index=1, content={"question": "B?"}),
                    StepCreate(type="TEXT_INPUT", order_index=0, content={"question": "A?"},
                               translations={"es": {"content": {"question": "¿A?"}}}),
                    StepCreate(type="TEXT_INPUT", order_index=2, content={"question": "hidden"}, is_active=False),
                ],
            ),
            ExerciseCreate(name="First", order_index=1, translations={"es": {"name": "Primero"}}),
            ExerciseCreate(name="Retired", order_index=0, is_active=False),
        ],
    )

    tree = selector.get_intervention_for_user(user.id).intervention

    assert tree["name"] == "Respiración"
    assert tree["language"] == "es"
    assert [e["name"] for e in tree["exercises"]] == ["Primero", "Second"]
    steps = tree["exercises"][1]["steps"]
    assert [s["content"]["question"] for s in steps] == ["¿A?", "B?"]
    assert steps[0]["type"] == "TEXT_INPUT"


def test_list_interactions_newest_first_with_filter(db, selector, clock):
    user = make_user(db)
    a = make_intervention(db, "A", LABEL, priority=10)
    add_completed_interaction(db, user, a, clock() - timedelta(days=3))
    add_completed_interaction(db, user, a, clock() - timedelta(days=1))
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    open_id = selector.get_intervention_for_user(user.id).interaction_id

    everything = selector.get_user_interactions(user.id)
    assert [i["date"] for i in everything] == sorted((i["date"] for i in everything), reverse=True)
    assert everything[0]["id"] == open_id
    assert everything[0]["intervention"]["name"] == "A"

    done = selector.get_user_interactions(user.id, completed=True)
    assert len(done) == 2 and all(i["completed"] for i in done)

    pending = selector.get_user_interactions(user.id, completed=False)
    assert [i["id"] for i in pending] == [open_id]

    assert len(selector.get_user_interactions(user.id, limit=1)) == 1


def test_list_interactions_rejects_non_positive_limit(selector):
    with pytest.raises(InvalidInputError):
        selector.get_user_interactions(1, limit=0)


def test_snapshot_upsert_is_last_write_wins(db, selector, clock):
    user = make_user(db)
    add_snapshot(db, user, clock().date(), **HIGH_STRESS_LOW_SLEEP_LOW_ACTIVITY)
    add_snapshot(db, user, clock().date(), activity_steps=9000, activity_minutes=60, sleep_hours=8.0)

    snapshot = selector.stores.metrics.find_snapshot(user.id, clock().date())

    assert snapshot.stress_level == 3.5
    assert snapshot.sleep_hours == 8.0
    assert snapshot.activity_steps == 9000
    assert selector.get_intervention_for_user(user.id).reason == NOT_NEEDED


class VanishingOpenInteractionStore(InteractionStore):
    """Loses the insert race, then finds the winner's interaction already closed."""

    def create_interaction(self, user_id, intervention_id, now):
        raise OpenInteractionConflict(f"user {user_id} already has an open interaction on {now.date()}")

    def find_open_interaction(self, user_id, since):
        return None


def test_conflict_without_open_interaction_is_internal_error(db, stores, settings, clock):
    user = make_user(db)
    add_snapshot(db, user, clock().date(), **LOW_EVERYTHING)
    make_intervention(db, "Only", LABEL, priority=1)
    stores.interactions = VanishingOpenInteractionStore(db)
    selector = InterventionSelector(stores, settings=settings, clock=clock)

    with pytest.raises(InternalError, match=f"user {user.id}"):
        selector.get_intervention_for_user(user.id)
