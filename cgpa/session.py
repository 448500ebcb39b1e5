import logging
import uuid
from dataclasses import dataclass, replace
from typing import Iterable, Tuple

from cgpa.backend_logic import Course, clamp_credit_hours, compute_average
from cgpa.config import DEFAULT_CREDIT_HOURS, GRADE_OPTIONS, NATIVE_SCALE, SCALES

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("code", "grade", "credit_hours")


@dataclass(frozen=True)
class SessionState:
    """
    Everything the calculator page shows. Each operation below returns a new
    state with the average recomputed, so it always matches the course list.
    """
    courses: Tuple[Course, ...] = ()
    scale: str = NATIVE_SCALE
    average: float = 0


def _recompute(courses: Iterable[Course], scale: str) -> SessionState:
    courses = tuple(courses)
    return SessionState(courses=courses, scale=scale, average=compute_average(courses, scale))


def _check_scale(scale: str) -> str:
    if scale not in SCALES:
        raise ValueError(f"Unknown scale {scale!r}; expected one of {SCALES}")
    return scale


def new_course_id() -> str:
    return uuid.uuid4().hex


def new_session(scale: str = NATIVE_SCALE) -> SessionState:
    return _recompute((), _check_scale(scale))


def add_course(state: SessionState) -> SessionState:
    course = Course(id=new_course_id(), code="", grade="", credit_hours=DEFAULT_CREDIT_HOURS)
    return _recompute(state.courses + (course,), state.scale)


def remove_course(state: SessionState, course_id: str) -> SessionState:
    return _recompute((c for c in state.courses if c.id != course_id), state.scale)


def update_course_field(state: SessionState, course_id: str, field: str, value) -> SessionState:
    if field not in EDITABLE_FIELDS:
        raise ValueError(f"Unknown course field {field!r}; expected one of {EDITABLE_FIELDS}")

    if field == "code":
        value = str(value or "").upper()
    elif field == "grade":
        value = str(value or "")
        if value not in GRADE_OPTIONS and value != "":
            raise ValueError(f"Unknown grade {value!r}")
    else:
        value = clamp_credit_hours(value)

    courses = [
        replace(c, **{field: value}) if c.id == course_id else c
        for c in state.courses
    ]
    return _recompute(courses, state.scale)


def set_scale(state: SessionState, scale: str) -> SessionState:
    return _recompute(state.courses, _check_scale(scale))


def replace_courses(state: SessionState, courses: Iterable[Course], scale: str) -> SessionState:
    """Full replace of the course list and scale, used when loading a file."""
    new_state = _recompute(courses, _check_scale(scale))
    logger.info("Replaced session with %d courses on the %s scale", len(new_state.courses), scale)
    return new_state
