import unittest

from cgpa.backend_logic import Course, compute_average
from cgpa.config import DEFAULT_CREDIT_HOURS
from cgpa.session import (
    SessionState,
    add_course,
    new_session,
    remove_course,
    replace_courses,
    set_scale,
    update_course_field,
)


def filled_session():
    state = add_course(add_course(new_session()))
    first, second = (c.id for c in state.courses)
    state = update_course_field(state, first, "code", "csc101")
    state = update_course_field(state, first, "grade", "A")
    state = update_course_field(state, first, "credit_hours", 3)
    state = update_course_field(state, second, "code", "MTH101")
    state = update_course_field(state, second, "grade", "B")
    state = update_course_field(state, second, "credit_hours", 4)
    return state


class SessionTests(unittest.TestCase):
    def test_new_session_defaults(self):
        state = new_session()
        self.assertEqual(state.courses, ())
        self.assertEqual(state.scale, "5.0")
        self.assertEqual(state.average, 0)

    def test_add_course_uses_defaults_and_unique_ids(self):
        state = new_session()
        for _ in range(20):
            state = add_course(state)
        ids = [c.id for c in state.courses]
        self.assertEqual(len(set(ids)), 20)
        blank = state.courses[0]
        self.assertEqual((blank.code, blank.grade, blank.credit_hours), ("", "", DEFAULT_CREDIT_HOURS))

    def test_average_follows_every_edit(self):
        state = filled_session()
        self.assertEqual(state.average, 4.43)
        self.assertEqual(state.courses[0].code, "CSC101")

        state = set_scale(state, "4.0")
        self.assertEqual(state.average, 3.43)
        self.assertEqual([c.grade for c in state.courses], ["A", "B"])

        state = remove_course(state, state.courses[1].id)
        self.assertEqual(state.average, 4.0)

    def test_operations_do_not_mutate_previous_state(self):
        before = filled_session()
        after = add_course(before)
        self.assertEqual(len(before.courses), 2)
        self.assertEqual(len(after.courses), 3)
        self.assertEqual(after.average, before.average)

    def test_credit_hours_are_clamped_on_entry(self):
        state = add_course(new_session())
        course_id = state.courses[0].id
        self.assertEqual(update_course_field(state, course_id, "credit_hours", 9).courses[0].credit_hours, 6)
        self.assertEqual(update_course_field(state, course_id, "credit_hours", 0).courses[0].credit_hours, 1)
        self.assertEqual(update_course_field(state, course_id, "credit_hours", "x").courses[0].credit_hours, 1)

    def test_unknown_grade_rejected(self):
        state = add_course(new_session())
        with self.assertRaises(ValueError):
            update_course_field(state, state.courses[0].id, "grade", "Z")

    def test_grade_can_be_cleared(self):
        state = filled_session()
        state = update_course_field(state, state.courses[0].id, "grade", "")
        self.assertEqual(state.courses[0].grade, "")
        self.assertEqual(state.average, 4.0)

    def test_unknown_field_rejected(self):
        state = add_course(new_session())
        with self.assertRaises(ValueError):
            update_course_field(state, state.courses[0].id, "id", "x")

    def test_unknown_scale_rejected(self):
        with self.assertRaises(ValueError):
            set_scale(new_session(), "10.0")

    def test_remove_unknown_id_is_noop(self):
        state = filled_session()
        self.assertEqual(remove_course(state, "missing").courses, state.courses)

    def test_replace_courses_swaps_everything(self):
        state = filled_session()
        loaded = [Course(id="x1", code="PHY101", grade="C", credit_hours=2)]
        new_state = replace_courses(state, loaded, "4.0")
        self.assertEqual(new_state.courses, tuple(loaded))
        self.assertEqual(new_state.scale, "4.0")
        self.assertEqual(new_state.average, compute_average(loaded, "4.0"))

    def test_state_is_a_value(self):
        self.assertEqual(SessionState(), new_session())


if __name__ == "__main__":
    unittest.main()
