import json
import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from numbers import Real
from typing import Iterable, List, Optional

from cgpa.backend_logic import Course, clamp_credit_hours
from cgpa.session import new_course_id
from cgpa.config import (
    NATIVE_SCALE,
    SCALES,
    SNAPSHOT_FILE_PREFIX,
    SNAPSHOT_MEDIA_TYPE,
)
from cgpa.errors import (
    InvalidMediaType,
    MissingCourses,
    NoValidCourses,
    UnparsableSnapshot,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    courses: List[Course]
    scale: str
    last_updated: Optional[datetime] = None


# ------------------------
# Save
# ------------------------

def course_to_dict(course: Course) -> dict:
    return {
        "id": course.id,
        "code": course.code,
        "grade": course.grade,
        "creditHours": course.credit_hours,
    }


def serialize(courses: Iterable[Course], scale: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    data = {
        "courses": [course_to_dict(c) for c in courses],
        "scale": scale,
        "lastUpdated": now.isoformat(timespec="milliseconds"),
    }
    return json.dumps(data, indent=2, ensure_ascii=False)


def snapshot_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{SNAPSHOT_FILE_PREFIX}-{today.isoformat()}.json"


# ------------------------
# Load
# ------------------------

def check_media_type(declared: Optional[str]) -> None:
    if declared != SNAPSHOT_MEDIA_TYPE:
        raise InvalidMediaType(declared)


def _is_positive_number(value) -> bool:
    # bool is a Real; true/false in a file is not a credit value
    return isinstance(value, Real) and not isinstance(value, bool) and value > 0


def _parse_course(entry) -> Optional[Course]:
    if not isinstance(entry, dict):
        return None
    course_id = entry.get("id")
    # non-empty strings or non-zero integers only
    if isinstance(course_id, bool) or not isinstance(course_id, (str, int)) or not course_id:
        return None
    if not isinstance(entry.get("code"), str) or not isinstance(entry.get("grade"), str):
        return None
    if not _is_positive_number(entry.get("creditHours")):
        return None
    return Course(
        id=str(course_id),
        code=entry["code"],
        grade=entry["grade"],
        credit_hours=clamp_credit_hours(entry["creditHours"]),
    )


def _parse_timestamp(value) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        # "Z" suffix is not accepted by fromisoformat before 3.11
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def deserialize(text: str) -> Snapshot:
    """
    Parse a saved data file. Entries that are not well-formed courses are
    dropped; the whole load fails only when nothing usable remains.
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError, RecursionError) as e:
        raise UnparsableSnapshot(f"Failed to parse file as JSON: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("courses"), list):
        raise MissingCourses("Invalid file format: courses array not found")

    courses = []
    seen_ids = set()
    for entry in data["courses"]:
        course = _parse_course(entry)
        if course is None:
            logger.debug("Dropping malformed course entry: %r", entry)
            continue
        if course.id in seen_ids:
            course = replace(course, id=new_course_id())
        seen_ids.add(course.id)
        courses.append(course)

    if not courses:
        raise NoValidCourses("No valid courses found in file")

    scale = data.get("scale")
    if scale not in SCALES:
        if scale is not None:
            logger.warning("Unknown scale %r in file, using %s", scale, NATIVE_SCALE)
        scale = NATIVE_SCALE

    dropped = len(data["courses"]) - len(courses)
    logger.info("Loaded %d courses (%d dropped) on the %s scale", len(courses), dropped, scale)
    return Snapshot(courses=courses, scale=scale, last_updated=_parse_timestamp(data.get("lastUpdated")))


def read_json_upload(uploaded_file) -> Snapshot:
    """Validate and decode a Streamlit ``UploadedFile``."""
    check_media_type(getattr(uploaded_file, "type", None))
    raw = uploaded_file.getvalue()
    try:
        text = raw.decode("utf-8-sig") if isinstance(raw, bytes) else raw
    except UnicodeDecodeError as e:
        raise UnparsableSnapshot(f"File is not UTF-8 text: {e}") from e
    return deserialize(text)
