import logging

import streamlit as st

from cgpa.backend_logic import (
    GRADE_POINTS,
    classify_degree,
    convert_average,
    courses_frame,
    duplicate_codes,
    summarize,
)
from cgpa.config import (
    GRADE_OPTIONS,
    MAX_CREDIT_HOURS,
    MIN_CREDIT_HOURS,
    NATIVE_SCALE,
    PAGE_ICON,
    PAGE_TITLE,
    SCALE_LABELS,
    SCALES,
    SNAPSHOT_MEDIA_TYPE,
)
from cgpa.errors import CGPAError
from cgpa.io_json import read_json_upload, serialize, snapshot_filename
from cgpa.logging_config import setup_logging
from cgpa.session import (
    add_course,
    new_session,
    remove_course,
    replace_courses,
    set_scale,
    update_course_field,
)
from cgpa.transcript_pdf import render_transcript


st.set_page_config(page_title=PAGE_TITLE, page_icon=PAGE_ICON, layout="centered")


@st.cache_resource
def _init_logging() -> logging.Logger:
    return setup_logging()


logger = _init_logging()

if "cgpa" not in st.session_state:
    st.session_state["cgpa"] = new_session(NATIVE_SCALE)
    st.session_state["scale_select"] = NATIVE_SCALE


# ------------------------
# Callbacks (one per user action)
# ------------------------

def _state():
    return st.session_state["cgpa"]


def _commit(new_state):
    st.session_state["cgpa"] = new_state
    # a built transcript no longer matches the courses
    st.session_state.pop("transcript", None)


def _on_add():
    _commit(add_course(_state()))


def _on_remove(course_id):
    _commit(remove_course(_state(), course_id))


def _on_field(course_id, field, key):
    _commit(update_course_field(_state(), course_id, field, st.session_state[key]))
    if field == "code":
        # show the normalised code back in the input
        st.session_state[key] = next(c.code for c in _state().courses if c.id == course_id)


def _on_scale():
    _commit(set_scale(_state(), st.session_state["scale_select"]))


def _forget_course_widgets():
    for key in list(st.session_state.keys()):
        if key.startswith(("code_", "grade_", "credits_")):
            del st.session_state[key]


def _on_load():
    uploaded = st.session_state.get("snapshot_upload")
    if uploaded is None:
        st.session_state["flash"] = ("warning", "Choose a JSON file to load first.")
        return
    try:
        snapshot = read_json_upload(uploaded)
    except CGPAError as e:
        logger.warning("Rejected %s: %s", uploaded.name, e)
        st.session_state["flash"] = ("error", f"Error loading file: {e}")
        return

    _forget_course_widgets()
    _commit(replace_courses(_state(), snapshot.courses, snapshot.scale))
    st.session_state["scale_select"] = snapshot.scale
    saved = f" from {snapshot.last_updated:%d/%m/%Y}" if snapshot.last_updated else ""
    st.session_state["flash"] = ("success", f"Loaded {len(snapshot.courses)} courses{saved}.")


def _on_transcript():
    state = _state()
    try:
        transcript = render_transcript(state.courses, state.scale, state.average)
    except CGPAError as e:
        st.session_state.pop("transcript", None)
        st.session_state["flash"] = ("error", str(e))
        return
    st.session_state["transcript"] = (transcript.filename, transcript.to_pdf())
    st.session_state["flash"] = ("success", "Your academic transcript is ready to download.")


# ------------------------
# Header
# ------------------------

st.title(f"{PAGE_ICON} UNILAG CGPA Calculator")
st.write("Calculate your UNILAG CGPA and see the 4.0 scale conversion.")

flash = st.session_state.pop("flash", None)
if flash:
    kind, message = flash
    getattr(st, kind)(message)

state = _state()

col_cgpa, col_scale = st.columns([3, 1])
with col_cgpa:
    st.metric("Current CGPA", f"{state.average:.2f} / {state.scale}")
with col_scale:
    st.selectbox(
        "Scale",
        list(SCALES)[::-1],
        format_func=lambda s: SCALE_LABELS[s],
        key="scale_select",
        on_change=_on_scale,
    )

tab_calc, tab_data = st.tabs(["Calculator", "Data Management"])

# ------------------------
# Calculator
# ------------------------

with tab_calc:
    points = GRADE_POINTS[state.scale]
    st.subheader("Course grades")
    st.caption(", ".join(f"{g}={points[g]:g}" for g in GRADE_OPTIONS))

    duplicates = duplicate_codes(state.courses)
    if duplicates:
        st.warning(f"Duplicate course codes detected: {', '.join(d.upper() for d in duplicates)}")

    if not state.courses:
        st.info('No courses added yet. Click "Add course" to get started.')

    options = [""] + list(GRADE_OPTIONS)
    for course in state.courses:
        st.session_state.setdefault(f"code_{course.id}", course.code)
        st.session_state.setdefault(f"grade_{course.id}", course.grade if course.grade in options else "")
        st.session_state.setdefault(f"credits_{course.id}", course.credit_hours)

        c1, c2, c3, c4 = st.columns([3, 2, 2, 1])
        with c1:
            st.text_input(
                "Course code",
                placeholder="e.g., CSC101",
                key=f"code_{course.id}",
                on_change=_on_field,
                args=(course.id, "code", f"code_{course.id}"),
            )
        with c2:
            st.selectbox(
                "Grade",
                options,
                format_func=lambda g: f"{g} ({points[g]:g})" if g else "Select grade",
                key=f"grade_{course.id}",
                on_change=_on_field,
                args=(course.id, "grade", f"grade_{course.id}"),
            )
        with c3:
            st.number_input(
                "Credit hours",
                min_value=MIN_CREDIT_HOURS,
                max_value=MAX_CREDIT_HOURS,
                step=1,
                key=f"credits_{course.id}",
                on_change=_on_field,
                args=(course.id, "credit_hours", f"credits_{course.id}"),
            )
        with c4:
            st.write("")
            st.button("🗑", key=f"remove_{course.id}", on_click=_on_remove, args=(course.id,))

    st.button("Add course", type="primary", on_click=_on_add)

    if state.courses:
        st.markdown("---")
        st.subheader("Summary")
        summary = summarize(state.courses, state.scale)
        s1, s2, s3, s4 = st.columns(4)
        s1.metric("Total courses", summary.total_courses)
        s2.metric("Completed", summary.completed)
        s3.metric("Total credits", summary.total_credits)
        s4.metric("CGPA", f"{summary.cgpa:.2f}")

        if state.scale == "5.0" and summary.completed:
            e1, e2 = st.columns(2)
            e1.metric("Equivalent 4.0 scale", f"{convert_average(state.courses, '4.0'):.2f}")
            e2.metric("Class of degree", classify_degree(summary.cgpa))

# ------------------------
# Save / load / transcript
# ------------------------

with tab_data:
    st.subheader("Data management")
    d1, d2, d3 = st.columns(3)

    with d1:
        st.markdown("**Download data**")
        st.download_button(
            "Download JSON",
            data=serialize(state.courses, state.scale),
            file_name=snapshot_filename(),
            mime=SNAPSHOT_MEDIA_TYPE,
        )
        st.caption("Save your current progress as a JSON file.")

    with d2:
        st.markdown("**Load data**")
        st.file_uploader("Saved JSON file", type=["json"], key="snapshot_upload")
        st.button("Load JSON", on_click=_on_load)
        st.caption("Replaces the current courses with the saved ones.")

    with d3:
        st.markdown("**Generate transcript**")
        st.button("Build PDF", on_click=_on_transcript, disabled=not state.courses)
        if "transcript" in st.session_state:
            filename, pdf_bytes = st.session_state["transcript"]
            st.download_button(
                "Download PDF",
                data=pdf_bytes,
                file_name=filename,
                mime="application/pdf",
            )
        st.caption("A formatted academic transcript.")

    if state.courses:
        st.markdown("**Valid courses preview**")
        st.dataframe(courses_frame(state.courses, state.scale), hide_index=True, use_container_width=True)
