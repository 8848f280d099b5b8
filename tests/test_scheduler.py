from datetime import date

import pytest

from lessonbook.errors import ValidationError
from lessonbook.schemas import LessonOccurrence, LessonTemplate
from lessonbook.services.scheduler import (
    clamp_weeks,
    filter_duplicates,
    generate_occurrences,
    starting_session,
)


def make_template(**overrides):
    data = {
        "id": "abc",
        "teacherId": "t1",
        "studentId": "s1",
        "date": "2025-01-06",
        "timeSlot": "16:00",
        "type": "regular",
    }
    data.update(overrides)
    return LessonTemplate.model_validate(data)


class TestGenerateOccurrences:
    def test_weekly_series_dates_ids_and_sessions(self):
        occ = generate_occurrences(make_template(), repeat_weekly=True, weeks=3)

        assert [o.date for o in occ] == ["2025-01-06", "2025-01-13", "2025-01-20"]
        assert [o.id for o in occ] == ["abc", "abc_1", "abc_2"]
        assert [o.session_number for o in occ] == [1, 2, 3]
        assert {o.series_id for o in occ} == {"series_abc"}
        assert all(o.time_slot == "16:00" for o in occ)

    @pytest.mark.parametrize("weeks", [1, 7, 52])
    def test_exactly_w_candidates_seven_days_apart(self, weeks):
        occ = generate_occurrences(make_template(date="2025-03-03"), repeat_weekly=True, weeks=weeks)

        assert len(occ) == weeks
        dates = [date.fromisoformat(o.date) for o in occ]
        assert all((b - a).days == 7 for a, b in zip(dates, dates[1:]))
        numbers = [o.session_number for o in occ]
        assert all(b == a + 1 for a, b in zip(numbers, numbers[1:]))

    def test_crosses_month_year_and_dst_boundaries(self):
        occ = generate_occurrences(make_template(date="2024-12-23"), repeat_weekly=True, weeks=3)
        assert [o.date for o in occ] == ["2024-12-23", "2024-12-30", "2025-01-06"]

        occ = generate_occurrences(make_template(date="2025-03-03"), repeat_weekly=True, weeks=2)
        assert occ[1].date == "2025-03-10"

    def test_defaults_to_twelve_weeks(self):
        assert len(generate_occurrences(make_template())) == 12

    def test_weeks_are_clamped(self):
        assert len(generate_occurrences(make_template(), repeat_weekly=True, weeks=500)) == 52
        assert len(generate_occurrences(make_template(), repeat_weekly=True, weeks=0)) == 1
        assert len(generate_occurrences(make_template(), repeat_weekly=True, weeks=-4)) == 1
        assert clamp_weeks(None) == 12

    def test_non_repeating_booking_has_no_series(self):
        occ = generate_occurrences(make_template(), repeat_weekly=False, weeks=10)

        assert len(occ) == 1
        assert occ[0].series_id is None
        assert occ[0].id == "abc"

    def test_makeup_never_recurs(self):
        occ = generate_occurrences(make_template(type="makeup"), repeat_weekly=True, weeks=10, current_session=3)

        assert len(occ) == 1
        assert occ[0].type == "makeup"
        assert occ[0].series_id is None
        assert occ[0].session_number == 3

    def test_explicit_session_number_wins(self):
        occ = generate_occurrences(make_template(sessionNumber=5), repeat_weekly=True, weeks=2, current_session=2)
        assert [o.session_number for o in occ] == [5, 6]

    def test_missing_id_gets_generated(self):
        occ = generate_occurrences(make_template(id=None), repeat_weekly=True, weeks=2)
        assert occ[0].id
        assert occ[1].id == f"{occ[0].id}_1"
        assert occ[0].series_id == f"series_{occ[0].id}"

    @pytest.mark.parametrize("field", ["teacherId", "studentId", "date", "timeSlot"])
    def test_missing_required_field_rejects_request(self, field):
        with pytest.raises(ValidationError) as exc:
            generate_occurrences(make_template(**{field: None}))
        assert field.lower() in exc.value.detail.replace("_", "").lower()

    def test_blank_field_counts_as_missing(self):
        with pytest.raises(ValidationError):
            generate_occurrences(make_template(timeSlot="   "))

    def test_bad_date_rejected(self):
        with pytest.raises(ValidationError):
            generate_occurrences(make_template(date="06/01/2025"))


class TestStartingSession:
    def test_regular_continues_after_booked_sessions(self):
        assert starting_session(make_template(), None) == 1
        assert starting_session(make_template(), 0) == 1
        assert starting_session(make_template(), 4) == 5

    def test_makeup_reuses_current_session(self):
        assert starting_session(make_template(type="makeup"), 4) == 4
        assert starting_session(make_template(type="makeup"), 0) == 1

    def test_non_positive_explicit_value_ignored(self):
        assert starting_session(make_template(sessionNumber=0), 2) == 3


class TestFilterDuplicates:
    def existing(self, **overrides):
        data = {
            "id": "old",
            "teacherId": "t1",
            "studentId": "s9",
            "date": "2025-01-13",
            "timeSlot": "16:00",
        }
        data.update(overrides)
        return LessonOccurrence.model_validate(data)

    def test_collision_ignores_student(self):
        candidates = generate_occurrences(make_template(), repeat_weekly=True, weeks=3)
        accepted, outcomes = filter_duplicates(candidates, [self.existing()])

        assert [o.date for o in accepted] == ["2025-01-06", "2025-01-20"]
        assert [o.status for o in outcomes] == ["accepted", "skipped", "accepted"]
        assert outcomes[1].reason == "slot_taken"

    def test_other_teacher_or_slot_does_not_collide(self):
        candidates = generate_occurrences(make_template(), repeat_weekly=True, weeks=3)
        existing = [self.existing(teacherId="t2"), self.existing(id="x", timeSlot="16:30")]

        accepted, _ = filter_duplicates(candidates, existing)
        assert len(accepted) == 3

    def test_cancelled_booking_still_blocks_slot(self):
        candidates = generate_occurrences(make_template(), repeat_weekly=True, weeks=2)
        accepted, _ = filter_duplicates(candidates, [self.existing(cancelled=True)])
        assert [o.date for o in accepted] == ["2025-01-06"]

    def test_in_batch_collisions_are_dropped(self):
        first = generate_occurrences(make_template(), repeat_weekly=False)
        second = generate_occurrences(make_template(id="other", studentId="s2"), repeat_weekly=False)

        accepted, outcomes = filter_duplicates(first + second, [])
        assert [o.id for o in accepted] == ["abc"]
        assert outcomes[1].status == "skipped"

    def test_reused_id_is_skipped(self):
        candidates = generate_occurrences(make_template(id="old", date="2025-02-03"), repeat_weekly=False)
        accepted, outcomes = filter_duplicates(candidates, [self.existing()])
        assert accepted == []
        assert outcomes[0].reason == "id_taken"
