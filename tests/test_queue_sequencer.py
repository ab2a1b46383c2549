"""Tests for walk-in queue number reservation."""

from datetime import date

import pytest

from frontdesk.services.queue_sequencer import QueueSequencer

DAY = date(2024, 6, 1)


@pytest.fixture
def sequencer(redis_client) -> QueueSequencer:
    return QueueSequencer(redis_client, clinic_id="test-clinic", ttl_seconds=3600)


def test_numbers_start_at_one(sequencer: QueueSequencer) -> None:
    assert [sequencer.reserve(DAY) for _ in range(3)] == [1, 2, 3]
    assert sequencer.current(DAY) == 3


def test_each_day_has_its_own_counter(sequencer: QueueSequencer) -> None:
    sequencer.reserve(DAY)
    sequencer.reserve(DAY)

    assert sequencer.reserve(date(2024, 6, 2)) == 1


def test_each_clinic_has_its_own_counter(redis_client, sequencer: QueueSequencer) -> None:
    other = QueueSequencer(redis_client, clinic_id="annex", ttl_seconds=3600)
    sequencer.reserve(DAY)

    assert other.reserve(DAY) == 1


def test_floor_seeds_a_missing_counter(sequencer: QueueSequencer) -> None:
    """After the counter is lost, numbering resumes above what was persisted."""
    assert sequencer.reserve(DAY, floor=7) == 8


def test_floor_is_ignored_once_counter_exists(sequencer: QueueSequencer) -> None:
    sequencer.reserve(DAY, floor=7)

    assert sequencer.reserve(DAY, floor=2) == 9


def test_counter_expires(redis_client, sequencer: QueueSequencer) -> None:
    sequencer.reserve(DAY)

    ttl = redis_client.ttl(sequencer._key(DAY))
    assert 0 < ttl <= 3600


def test_current_without_reservations(sequencer: QueueSequencer) -> None:
    assert sequencer.current(DAY) == 0
