import json
import unittest
from datetime import date, datetime, timezone

from cgpa.backend_logic import Course, valid_courses
from cgpa.errors import (
    InvalidMediaType,
    MissingCourses,
    NoValidCourses,
    SnapshotError,
    UnparsableSnapshot,
)
from cgpa.io_json import (
    check_media_type,
    deserialize,
    read_json_upload,
    serialize,
    snapshot_filename,
)

COURSES = [
    Course(id="1", code="CSC101", grade="A", credit_hours=3),
    Course(id="2", code="MTH101", grade="B", credit_hours=4),
    Course(id="3", code="", grade="", credit_hours=3),
    Course(id="4", code="PHY101", grade="", credit_hours=2),
]


class FakeUpload:
    def __init__(self, payload, type="application/json", name="cgpa-data.json"):
        self._payload = payload
        self.type = type
        self.name = name

    def getvalue(self):
        return self._payload


class SerializeTests(unittest.TestCase):
    def test_document_shape(self):
        now = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        data = json.loads(serialize(COURSES, "4.0", now=now))
        self.assertEqual(set(data), {"courses", "scale", "lastUpdated"})
        self.assertEqual(data["scale"], "4.0")
        self.assertEqual(len(data["courses"]), 4)
        self.assertEqual(
            data["courses"][0],
            {"id": "1", "code": "CSC101", "grade": "A", "creditHours": 3},
        )
        self.assertTrue(data["lastUpdated"].startswith("2024-05-01T12:30:00"))

    def test_empty_list_can_be_saved(self):
        data = json.loads(serialize([], "5.0"))
        self.assertEqual(data["courses"], [])
        with self.assertRaises(NoValidCourses):
            deserialize(serialize([], "5.0"))

    def test_human_readable(self):
        text = serialize(COURSES, "5.0")
        self.assertIn('\n  "courses": [', text)

    def test_filename_embeds_date(self):
        self.assertEqual(snapshot_filename(date(2024, 5, 1)), "cgpa-data-2024-05-01.json")


class DeserializeTests(unittest.TestCase):
    def test_round_trip_keeps_valid_subset_and_scale(self):
        snapshot = deserialize(serialize(COURSES, "4.0"))
        self.assertEqual(snapshot.scale, "4.0")
        self.assertEqual(valid_courses(snapshot.courses), valid_courses(COURSES))
        self.assertIsNotNone(snapshot.last_updated)

    def test_incomplete_entries_survive_round_trip(self):
        snapshot = deserialize(serialize(COURSES, "5.0"))
        self.assertEqual(snapshot.courses, COURSES)

    def test_unparsable(self):
        with self.assertRaises(UnparsableSnapshot):
            deserialize("{not json")

    def test_deeply_nested_document_is_unparsable(self):
        with self.assertRaises(UnparsableSnapshot):
            deserialize("[" * 200000 + "]" * 200000)

    def test_huge_credit_hours_clamp_to_maximum(self):
        text = '{"courses": [{"id": "1", "code": "CSC101", "grade": "A", "creditHours": 1e999}]}'
        self.assertEqual(deserialize(text).courses[0].credit_hours, 6)

    def test_falsy_and_structured_ids_are_dropped(self):
        entries = [
            {"id": bad, "code": "CSC101", "grade": "A", "creditHours": 3}
            for bad in (0, "", [], {}, [1], {"a": 1}, 1.5, False, None)
        ]
        entries.append({"id": "keep", "code": "MTH101", "grade": "B", "creditHours": 3})
        courses = deserialize(json.dumps({"courses": entries})).courses
        self.assertEqual([c.id for c in courses], ["keep"])

    def test_missing_courses(self):
        for doc in ({"scale": "5.0"}, {"courses": "CSC101"}, {"courses": {"id": 1}}, [1, 2]):
            with self.assertRaises(MissingCourses):
                deserialize(json.dumps(doc))

    def test_no_valid_courses(self):
        doc = {"courses": [
            {"id": "", "code": "A", "grade": "A", "creditHours": 3},
            {"id": "2", "grade": "A", "creditHours": 3},
            {"id": "3", "code": "CSC101", "grade": "A", "creditHours": 0},
            {"id": "4", "code": "CSC101", "grade": "A", "creditHours": "3"},
            "CSC101",
        ]}
        with self.assertRaises(NoValidCourses):
            deserialize(json.dumps(doc))

    def test_empty_course_list(self):
        with self.assertRaises(NoValidCourses):
            deserialize(json.dumps({"courses": [], "scale": "5.0"}))

    def test_bad_entries_are_dropped(self):
        doc = {"courses": [
            {"id": "1", "code": "CSC101", "grade": "A", "creditHours": 3},
            {"id": "2", "code": "MTH101", "grade": "B", "creditHours": -1},
            {"code": "PHY101", "grade": "C", "creditHours": 2},
        ], "scale": "4.0"}
        snapshot = deserialize(json.dumps(doc))
        self.assertEqual([c.code for c in snapshot.courses], ["CSC101"])

    def test_scale_defaults_to_native(self):
        doc = {"courses": [{"id": "1", "code": "CSC101", "grade": "A", "creditHours": 3}]}
        self.assertEqual(deserialize(json.dumps(doc)).scale, "5.0")
        doc["scale"] = "7.0"
        self.assertEqual(deserialize(json.dumps(doc)).scale, "5.0")

    def test_loaded_credit_hours_are_clamped(self):
        doc = {"courses": [{"id": "1", "code": "CSC101", "grade": "A", "creditHours": 9}]}
        self.assertEqual(deserialize(json.dumps(doc)).courses[0].credit_hours, 6)

    def test_numeric_ids_and_duplicate_ids(self):
        doc = {"courses": [
            {"id": 7, "code": "CSC101", "grade": "A", "creditHours": 3},
            {"id": 7, "code": "MTH101", "grade": "B", "creditHours": 3},
        ]}
        courses = deserialize(json.dumps(doc)).courses
        self.assertEqual(courses[0].id, "7")
        self.assertNotEqual(courses[0].id, courses[1].id)

    def test_javascript_timestamp(self):
        doc = {
            "courses": [{"id": "1", "code": "CSC101", "grade": "A", "creditHours": 3}],
            "lastUpdated": "2024-05-01T12:30:00.000Z",
        }
        stamp = deserialize(json.dumps(doc)).last_updated
        self.assertEqual(stamp, datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc))

    def test_errors_are_value_errors(self):
        self.assertTrue(issubclass(SnapshotError, ValueError))


class UploadTests(unittest.TestCase):
    def test_media_type_checked_before_parse(self):
        with self.assertRaises(InvalidMediaType):
            read_json_upload(FakeUpload(b"{not json", type="text/plain"))
        with self.assertRaises(InvalidMediaType):
            check_media_type(None)

    def test_upload_round_trip(self):
        payload = serialize(COURSES, "4.0").encode("utf-8")
        snapshot = read_json_upload(FakeUpload(payload))
        self.assertEqual(snapshot.scale, "4.0")
        self.assertEqual(len(snapshot.courses), 4)

    def test_non_utf8_upload(self):
        with self.assertRaises(UnparsableSnapshot):
            read_json_upload(FakeUpload(b"\xff\xfe\x00"))


if __name__ == "__main__":
    unittest.main()
