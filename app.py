from __future__ import annotations
import asyncio
from typing import Optional
import streamlit as st
from dotenv import load_dotenv

from resumelens.agents.ats_scorer import DEFAULT_TARGET_ROLE, TARGET_ROLE, score_band
from resumelens.agents.job_matcher import match_band
from resumelens.config import configure_logging, get_settings
from resumelens.errors import ExtractionError
from resumelens.session import AnalysisSession, open_session
from resumelens.state import AnalysisStatus, AtsResult, MatchResult, StatusSnapshot
from resumelens.tools.text_extractor import PdfBackend, init_pdf_backend
from resumelens.utils import load_document
from resumelens.variants import ATS_SCORING, JOB_MATCHING, AnalysisVariant

SCORE_COLORS = {"good": "green", "fair": "orange", "poor": "red"}
MATCH_COLORS = {"high": "green", "medium": "orange", "low": "red"}


@st.cache_resource
def _pdf_backend() -> PdfBackend:
    # One-time PDF setup for the whole process
    return init_pdf_backend(get_settings())


def _session(variant: AnalysisVariant) -> AnalysisSession:
    key = f"session:{variant.name}"
    if key not in st.session_state:
        st.session_state[key] = open_session(variant, get_settings(), pdf_backend=_pdf_backend())
    return st.session_state[key]


def _sync_upload(session: AnalysisSession, uploaded, key: str, text_key: str) -> None:
    marker = None
    if uploaded is not None:
        marker = getattr(uploaded, "file_id", None) or (uploaded.name, uploaded.size)
    if st.session_state.get(key) == marker:
        return
    st.session_state[key] = marker
    doc = None
    if uploaded is not None:
        # A selected file replaces whatever was pasted
        st.session_state[text_key] = ""
        try:
            doc = asyncio.run(load_document(uploaded, uploaded.type, uploaded.name))
        except ExtractionError as e:
            st.error(e.user_message)
    session.select_document(doc)


def _render_error(snap: StatusSnapshot, title: str) -> None:
    message = snap.error.message if snap.error else "Unknown error."
    st.error(f"**{title}**\n\n{message}")


def render_ats(snap: StatusSnapshot) -> None:
    if snap.status is AnalysisStatus.IDLE:
        st.info("**No Analysis Yet**: upload your resume and define a role to see your ATS score.")
        return
    if snap.status is AnalysisStatus.ERROR:
        _render_error(snap, "Analysis Failed")
        return
    if snap.status is not AnalysisStatus.SUCCESS:
        return
    result: AtsResult = snap.result
    color = SCORE_COLORS[score_band(result)]
    st.markdown(f"ATS SCORE\n\n## :{color}[{result.score}/100]")
    st.progress(result.score / 100)

    st.subheader("Profile Summary")
    st.write(result.summary)

    st.subheader("Missing Keywords")
    if result.missing_keywords:
        st.markdown(" ".join(f"`{kw}`" for kw in result.missing_keywords))
    else:
        st.write("-")

    st.subheader("AI Feedback")
    st.markdown(result.feedback)


def render_matches(snap: StatusSnapshot) -> None:
    if snap.status is AnalysisStatus.IDLE:
        st.info("**Your Future Awaits**: upload your resume to find job matches.")
        return
    if snap.status is AnalysisStatus.ERROR:
        _render_error(snap, "An Error Occurred")
        return
    if snap.status is not AnalysisStatus.SUCCESS:
        return
    result: MatchResult = snap.result
    st.subheader("Top Matches For You")
    if snap.degraded:
        st.warning(f"**Demo Mode:** {snap.notice}")
    if not result.items:
        st.write("**No Job Matches Found**: try refining your resume or check back later.")
        return
    for job in result.items:
        with st.container(border=True):
            color = MATCH_COLORS[match_band(job)]
            st.markdown(f"**[{job.title}]({job.reference_url})** :{color}[{job.match_score}% Match]")
            st.caption(f"{job.organization} · {job.location}")


def _run(session: AnalysisSession, params: Optional[dict] = None) -> None:
    asyncio.run(session.submit(params))


def ats_tab() -> None:
    session = _session(ATS_SCORING)
    left, right = st.columns(2)
    with left:
        role = st.text_input("Target Job Role", value=DEFAULT_TARGET_ROLE, placeholder="e.g. Software Engineer")
        uploaded = st.file_uploader("Upload resume (PDF, TXT or MD)", type=["pdf", "txt", "md"],
                                    accept_multiple_files=False, key="ats_upload")
        _sync_upload(session, uploaded, "ats_upload_marker", "ats_text")
        text = st.text_area("Or paste text", height=256, placeholder="Paste your resume content here...",
                            key="ats_text")
        session.set_text(text)
        if st.button("Analyze Resume", disabled=not session.can_submit(), use_container_width=True):
            with st.spinner("Analyzing..."):
                _run(session, {TARGET_ROLE: role})
    with right:
        render_ats(session.snapshot())


def matching_tab() -> None:
    session = _session(JOB_MATCHING)
    left, right = st.columns(2)
    with left:
        uploaded = st.file_uploader("Upload your resume (.pdf, .txt or .md)", type=["pdf", "txt", "md"],
                                    accept_multiple_files=False, key="match_upload")
        _sync_upload(session, uploaded, "match_upload_marker", "match_text")
        text = st.text_area("Or paste content", height=192, placeholder="Paste your resume content here...",
                            key="match_text")
        session.set_text(text)
        if st.button("Find Matching Jobs", disabled=not session.can_submit(), use_container_width=True):
            with st.spinner("Finding jobs for you... This may take a moment."):
                _run(session)
    with right:
        render_matches(session.snapshot())


def main():
    load_dotenv()
    configure_logging(get_settings().LOG_LEVEL)
    st.set_page_config(page_title="Resume Lens", page_icon="📄", layout="wide")
    st.title("Resume Lens")
    st.caption("Score your resume for a target role and find matching jobs.")

    ats, matching = st.tabs(["Resume ATS Analyzer", "Smart Job Matching"])
    with ats:
        ats_tab()
    with matching:
        matching_tab()


if __name__ == "__main__":
    main()
