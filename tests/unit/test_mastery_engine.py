"""
Unit tests for mastery recomputation and session validation.
"""

import random

import pytest

from quizmastery.core.errors import InvalidSessionResult, StoreUnavailable
from quizmastery.core.models import AttemptRecord, TopicMastery
from quizmastery.study.mastery_engine import recompute_mastery, validate_session


def records(*outcomes):
    return [AttemptRecord(f"q{i}", ok, 1.0) for i, ok in enumerate(outcomes)]


class TestRecompute:
    def test_first_session_sets_accuracy(self):
        new = recompute_mastery(TopicMastery("Algebra"), 3, 4)

        assert new.score == pytest.approx(0.75)
        assert new.total_attempts == 4

    def test_weighted_by_questions(self):
        prior = TopicMastery("Algebra", score=1.0, total_attempts=5)

        new = recompute_mastery(prior, 0, 5)

        assert new.score == pytest.approx(0.5)
        assert new.total_attempts == 10

    def test_large_session_dominates_small_history(self):
        prior = TopicMastery("Algebra", score=0.0, total_attempts=1)

        new = recompute_mastery(prior, 9, 9)

        assert new.score == pytest.approx(0.9)

    def test_score_stays_in_range(self):
        new = recompute_mastery(TopicMastery("Algebra", 1.0, 3), 2, 2)

        assert 0.0 <= new.score <= 1.0
        assert new.total_attempts == 5

    def test_score_bounded_over_many_sessions(self):
        rng = random.Random(20240917)
        mastery = TopicMastery("Algebra")

        for _ in range(200):
            total = rng.randint(1, 25)
            correct = rng.choice([0, total, rng.randint(0, total)])
            previous = mastery.total_attempts
            mastery = recompute_mastery(mastery, correct, total)

            assert 0.0 <= mastery.score <= 1.0
            assert mastery.total_attempts == previous + total


class TestValidateSession:
    @pytest.mark.parametrize(
        "topic,correct,total",
        [
            ("", 1, 2),
            ("Algebra", 3, 2),
            ("Algebra", -1, 2),
            ("Algebra", 0, 0),
            ("Algebra", True, 2),
            ("Algebra", 1, 2.0),
        ],
    )
    def test_rejects_bad_tallies(self, topic, correct, total):
        with pytest.raises(InvalidSessionResult):
            validate_session(topic, correct, total, [])

    def test_accepts_matching_records(self):
        validate_session("Algebra", 2, 3, records(True, False, True))

    def test_rejects_record_count_mismatch(self):
        with pytest.raises(InvalidSessionResult):
            validate_session("Algebra", 1, 3, records(True))

    def test_rejects_correct_count_mismatch(self):
        with pytest.raises(InvalidSessionResult):
            validate_session("Algebra", 2, 2, records(True, False))

    def test_rejects_duplicate_question(self):
        duplicated = [AttemptRecord("q1", True, 1.0), AttemptRecord("q1", True, 2.0)]

        with pytest.raises(InvalidSessionResult):
            validate_session("Algebra", 2, 2, duplicated)


class TestSubmitSession:
    def test_new_topic(self, mastery_engine, store):
        mastery = mastery_engine.submit_session("s1", "Algebra", 3, 4, records(True, True, False, True))

        assert mastery == TopicMastery("Algebra", 0.75, 4)
        stored = store.get("s1")
        assert stored.mastery["Algebra"] == mastery
        assert len(stored.history) == 4
        assert all(a.topic == "Algebra" for a in stored.history)

    def test_two_sessions_accumulate(self, mastery_engine, store):
        mastery_engine.submit_session("s1", "Algebra", 5, 5)
        mastery = mastery_engine.submit_session("s1", "Algebra", 0, 5)

        assert mastery.score == pytest.approx(0.5)
        assert mastery.total_attempts == 10

    def test_other_topics_untouched(self, mastery_engine, store):
        mastery_engine.submit_session("s1", "Calculus", 1, 2)

        mastery_engine.submit_session("s1", "Algebra", 2, 2)

        assert store.get("s1").mastery["Calculus"] == TopicMastery("Calculus", 0.5, 2)

    def test_invalid_session_writes_nothing(self, mastery_engine, store):
        mastery_engine.submit_session("s1", "Algebra", 1, 1, records(True))

        with pytest.raises(InvalidSessionResult):
            mastery_engine.submit_session("s1", "Algebra", 5, 2)

        record = store.get("s1")
        assert record.mastery["Algebra"].total_attempts == 1
        assert len(record.history) == 1

    def test_same_session_twice_counts_twice(self, mastery_engine):
        mastery_engine.submit_session("s1", "Algebra", 1, 2)

        mastery = mastery_engine.submit_session("s1", "Algebra", 1, 2)

        assert mastery.total_attempts == 4

    def test_stored_score_bounded_over_many_sessions(self, mastery_engine, store):
        rng = random.Random(7)
        expected_attempts = 0

        for _ in range(50):
            total = rng.randint(1, 10)
            correct = rng.randint(0, total)
            expected_attempts += total

            mastery = mastery_engine.submit_session("s1", "Algebra", correct, total)

            assert 0.0 <= mastery.score <= 1.0
            assert store.get("s1").mastery["Algebra"] == mastery

        assert mastery.total_attempts == expected_attempts

    def test_store_failure_propagates(self, mastery_engine, monkeypatch):
        def unavailable(student_id, mutate):
            raise StoreUnavailable("Progress could not be saved; please retry")

        monkeypatch.setattr(mastery_engine.store, "apply", unavailable)

        with pytest.raises(StoreUnavailable):
            mastery_engine.submit_session("s1", "Algebra", 1, 1)
