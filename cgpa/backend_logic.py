import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Tuple

import numpy as np
import pandas as pd

from cgpa.config import (
    DEFAULT_CREDIT_HOURS,
    MAX_CREDIT_HOURS,
    MIN_CREDIT_HOURS,
)

# ------------------------
# Grade model
# ------------------------
GRADE_POINTS: Dict[str, Dict[str, float]] = {
    "5.0": {"A": 5.0, "B": 4.0, "C": 3.0, "D": 2.0, "E": 1.0, "F": 0.0},
    # E collapses onto F on the 4.0 scale
    "4.0": {"A": 4.0, "B": 3.0, "C": 2.0, "D": 1.0, "E": 0.0, "F": 0.0},
}

GRADE_DESCRIPTORS = {
    "A": "Excellent",
    "B": "Very Good",
    "C": "Good",
    "D": "Fair",
    "E": "Pass",
    "F": "Fail",
}

# (label, lower bound, upper bound) on the 5-point scale
DEGREE_CLASSES: List[Tuple[str, float, float]] = [
    ("First Class", 4.50, 5.00),
    ("Second Class Upper", 3.50, 4.49),
    ("Second Class Lower", 2.40, 3.49),
    ("Third Class", 1.50, 2.39),
    ("Pass", 1.00, 1.49),
]
UNCLASSIFIED = "Unclassified"

TABLE_COLUMNS = [
    "S/N",
    "Course Code",
    "Grade",
    "Credit Hours",
    "Grade Points",
    "Quality Points",
]


@dataclass(frozen=True)
class Course:
    id: str
    code: str = ""
    grade: str = ""
    credit_hours: int = DEFAULT_CREDIT_HOURS


@dataclass(frozen=True)
class CourseSummary:
    total_courses: int
    completed: int
    total_credits: int
    cgpa: float


# ------------------------
# Core logic
# ------------------------
def round_2dp_half_up(x: float) -> float:
    # scale to hundredths, round to the nearest integer, scale back
    hundredths = Decimal(str(x * 100)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return float(hundredths / 100)


def clamp_credit_hours(value) -> int:
    """
    Entry-time rule for credit hours: anything non-numeric (or zero) becomes
    the minimum, everything else is truncated and clamped into range.
    """
    try:
        hours = float(str(value).strip())
    except (TypeError, ValueError):
        return MIN_CREDIT_HOURS
    if math.isnan(hours):
        return MIN_CREDIT_HOURS
    # infinities clamp to their own end of the range
    return int(max(MIN_CREDIT_HOURS, min(MAX_CREDIT_HOURS, hours)))


def point_value(grade: str, scale: str, table: Dict[str, Dict[str, float]] = GRADE_POINTS) -> float:
    return float(table.get(scale, {}).get(grade, 0.0))


def is_valid_course(course: Course) -> bool:
    return course.code.strip() != "" and course.grade != "" and course.credit_hours > 0


def valid_courses(courses: Iterable[Course]) -> List[Course]:
    return [c for c in courses if is_valid_course(c)]


def weighted_mean(gc: np.ndarray) -> Tuple[float, float]:
    """
    gc: Nx2 numpy array -> [grade point, credit]
    returns: (unrounded credit-weighted mean, total credits)
    """
    if gc.size == 0:
        return 0.0, 0.0

    points = gc[:, 0].astype(float)
    credits = gc[:, 1].astype(float)
    total_credits = float(credits.sum())
    if total_credits == 0:
        return 0.0, 0.0

    return float(np.dot(points, credits) / total_credits), total_credits


def _points_and_credits(courses: Iterable[Course], scale: str, table) -> np.ndarray:
    rows = [
        (point_value(c.grade, scale, table), float(c.credit_hours))
        for c in valid_courses(courses)
    ]
    if not rows:
        return np.zeros((0, 2), dtype=float)
    return np.array(rows, dtype=float)


def compute_average(courses: Iterable[Course], scale: str, table=GRADE_POINTS) -> float:
    """
    Credit-weighted grade point average over the valid courses, rounded to
    two decimal places. Exactly 0 when nothing is valid.
    """
    gc = _points_and_credits(courses, scale, table)
    if gc.size == 0:
        return 0

    mean, _ = weighted_mean(gc)
    return round_2dp_half_up(mean)


def convert_average(courses: Iterable[Course], target_scale: str, table=GRADE_POINTS) -> float:
    """
    Average against another scale's table. Recomputed from the grades rather
    than mapped from the active average: E is worth 1.0 on the 5-point scale
    and 0.0 on the 4-point one, so the two are not linearly related.
    """
    return compute_average(courses, target_scale, table)


def duplicate_codes(courses: Iterable[Course]) -> List[str]:
    seen = set()
    duplicates: List[str] = []
    for course in courses:
        code = course.code.strip().lower()
        if code == "":
            continue
        if code in seen and code not in duplicates:
            duplicates.append(code)
        seen.add(code)
    return duplicates


def classify_degree(cgpa: float) -> str:
    for label, lower, _ in DEGREE_CLASSES:
        if cgpa >= lower:
            return label
    return UNCLASSIFIED


def summarize(courses: Iterable[Course], scale: str) -> CourseSummary:
    courses = list(courses)
    completed = [c for c in courses if c.code.strip() != "" and c.grade != ""]
    return CourseSummary(
        total_courses=len(courses),
        completed=len(completed),
        total_credits=sum(c.credit_hours for c in courses),
        cgpa=compute_average(courses, scale),
    )


def courses_frame(courses: Iterable[Course], scale: str, table=GRADE_POINTS) -> pd.DataFrame:
    """
    One row per valid course, in entry order, with per-course grade points
    and quality points (grade points x credit hours).
    """
    rows = []
    for idx, course in enumerate(valid_courses(courses), start=1):
        points = point_value(course.grade, scale, table)
        rows.append({
            "S/N": idx,
            "Course Code": course.code.strip(),
            "Grade": course.grade,
            "Credit Hours": course.credit_hours,
            "Grade Points": points,
            "Quality Points": points * course.credit_hours,
        })
    return pd.DataFrame(rows, columns=TABLE_COLUMNS)
