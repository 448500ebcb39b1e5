# ------------------------
# Institution & scales
# ------------------------
INSTITUTION_NAME = "UNIVERSITY OF LAGOS"
INSTITUTION_SHORT = "UNILAG"

NATIVE_SCALE = "5.0"
SCALES = ("4.0", "5.0")
SCALE_LABELS = {
    "5.0": "UNILAG (5.0)",
    "4.0": "Standard (4.0)",
}

GRADE_OPTIONS = ("A", "B", "C", "D", "E", "F")

# ------------------------
# Credit hours
# ------------------------
MIN_CREDIT_HOURS = 1
MAX_CREDIT_HOURS = 6
DEFAULT_CREDIT_HOURS = 3

# ------------------------
# Files
# ------------------------
SNAPSHOT_MEDIA_TYPE = "application/json"
SNAPSHOT_FILE_PREFIX = "cgpa-data"
TRANSCRIPT_FILE_PREFIX = f"{INSTITUTION_SHORT}_Transcript"

# ------------------------
# Streamlit page
# ------------------------
PAGE_TITLE = f"{INSTITUTION_SHORT} CGPA Calculator | Weighted Grade Point Average"
PAGE_ICON = "🎓"
