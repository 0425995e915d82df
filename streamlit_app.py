"""Streamlit editor for the CV Builder API."""

import base64
import os
from typing import Any, Dict, List, Optional, Tuple

import httpx
import streamlit as st
import streamlit.components.v1 as components
from pydantic import ValidationError

from cv_builder.client import CVBuilderClient
from cv_builder.models.cv_models import LanguageLevel, SectionKey, SkillLevel
from cv_builder.services.cv_editor import CVEditor
from cv_builder.services.section_store import SECTION_DESCRIPTORS

# Configuration
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")

# Page configuration
st.set_page_config(
    page_title="CV Builder",
    page_icon="📄",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS
st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        color: #1f77b4;
        margin-bottom: 1rem;
    }
    .success-box {
        background-color: #d4edda;
        padding: 1rem;
        border-radius: 0.5rem;
        border-left: 4px solid #28a745;
        margin-top: 1rem;
    }
</style>
""", unsafe_allow_html=True)

# (field, label, kind) per section; kinds: text, area, lines, bool, int, skill_level, language_level
ITEM_FORMS: Dict[SectionKey, List[Tuple[str, str, str]]] = {
    SectionKey.WORK_EXPERIENCE: [
        ("job_title", "Job title *", "text"),
        ("company_name", "Company *", "text"),
        ("location", "Location", "text"),
        ("start_date", "Start (YYYY-MM)", "text"),
        ("end_date", "End (YYYY-MM)", "text"),
        ("is_current", "I currently work here", "bool"),
        ("responsibilities", "Key responsibilities (one per line)", "lines"),
        ("achievements", "Key achievements (one per line)", "lines"),
    ],
    SectionKey.EDUCATION: [
        ("degree_title", "Degree *", "text"),
        ("institution_name", "Institution *", "text"),
        ("field_of_study", "Field of study", "text"),
        ("location", "Location", "text"),
        ("start_date", "Start (YYYY-MM)", "text"),
        ("end_date", "End (YYYY-MM)", "text"),
        ("is_ongoing", "Currently studying", "bool"),
        ("grade_gpa", "Grade/GPA", "text"),
        ("description", "Description", "area"),
    ],
    SectionKey.SKILLS: [
        ("skill_name", "Skill *", "text"),
        ("category", "Category", "text"),
        ("proficiency_level", "Level", "skill_level"),
        ("years_experience", "Years of experience", "int"),
    ],
    SectionKey.LANGUAGES: [
        ("language_name", "Language *", "text"),
        ("proficiency_level", "Level", "language_level"),
        ("certification", "Certification", "text"),
    ],
    SectionKey.CERTIFICATIONS: [
        ("certification_name", "Certification *", "text"),
        ("issuing_organization", "Issuing organization", "text"),
        ("issue_date", "Issued (YYYY-MM)", "text"),
        ("expiry_date", "Expires (YYYY-MM)", "text"),
        ("credential_id", "Credential ID", "text"),
        ("credential_url", "Credential URL", "text"),
        ("description", "Description", "area"),
    ],
    SectionKey.PROJECTS: [
        ("project_name", "Project *", "text"),
        ("role", "Role", "text"),
        ("description", "Description", "area"),
        ("technologies_used", "Technologies (one per line)", "lines"),
        ("project_url", "Project URL", "text"),
        ("start_date", "Start (YYYY-MM)", "text"),
        ("end_date", "End (YYYY-MM)", "text"),
        ("is_ongoing", "Ongoing", "bool"),
    ],
}


def get_client(api_url: str) -> CVBuilderClient:
    return CVBuilderClient(api_url)


def item_label(section: SectionKey, item: Any) -> str:
    """Short one-line description of an item for the editor list."""
    title_field = ITEM_FORMS[section][0][0]
    return str(getattr(item, title_field) or "(untitled)")


def render_field(key: str, label: str, kind: str, current: Any = None) -> Any:
    """Draw one form input and return its value in model terms."""
    if kind == "bool":
        return st.checkbox(label, value=bool(current), key=key)
    if kind == "area":
        return st.text_area(label, value=current or "", key=key)
    if kind == "lines":
        text = st.text_area(label, value="\n".join(current or []), key=key)
        return [line.strip() for line in text.splitlines() if line.strip()]
    if kind == "int":
        value = st.number_input(label, min_value=0, step=1, value=current or 0, key=key)
        return int(value) or None
    if kind in ("skill_level", "language_level"):
        levels = [""] + [level.value for level in (SkillLevel if kind == "skill_level" else LanguageLevel)]
        selected = current.value if current else ""
        return st.selectbox(label, levels, index=levels.index(selected), key=key)
    return st.text_input(label, value=current or "", key=key)


def load_into_session(client: CVBuilderClient, professional_id: str) -> None:
    """Load the CV for a professional and start a fresh editor."""
    try:
        cv, prefilled, warnings = client.load_cv(professional_id)
    except httpx.HTTPStatusError as e:
        st.error(f"Could not load CV: {e.response.json().get('detail', str(e))}")
        return
    except httpx.HTTPError as e:
        st.error(f"Error communicating with the API: {str(e)}")
        return

    st.session_state.editor = CVEditor(cv)
    st.session_state.professional_id = professional_id
    if prefilled:
        st.info("No CV stored yet. Started from your profile.")
    for warning in warnings:
        st.warning(f"{SECTION_DESCRIPTORS[warning.section].title} could not be loaded and is shown empty")


def save_from_session(client: CVBuilderClient) -> None:
    """Save the editor's CV and record the assigned id."""
    editor: CVEditor = st.session_state.editor
    try:
        result = client.save_cv(st.session_state.professional_id, editor.snapshot())
    except httpx.HTTPStatusError as e:
        st.error(f"Save failed, nothing was stored: {e.response.json().get('detail', str(e))}")
        return
    except httpx.HTTPError as e:
        st.error(f"Error communicating with the API: {str(e)}")
        return

    if result.cv_id:
        editor.mark_saved(result.cv_id)
    if result.failed_sections:
        failed = ", ".join(SECTION_DESCRIPTORS[f.section].title for f in result.failed_sections)
        st.warning(f"CV saved, but these sections failed and may be empty: {failed}. Save again to retry.")
    else:
        st.markdown('<div class="success-box">✅ CV saved</div>', unsafe_allow_html=True)


def edit_root(editor: CVEditor) -> None:
    """Form for the CV-level fields."""
    with st.form("root_form"):
        st.subheader("Professional Summary")
        summary = st.text_area("Summary", value=editor.cv.summary, height=150)
        col1, col2 = st.columns(2)
        with col1:
            citizenship = st.text_input("Citizenship", value=editor.cv.citizenship)
            has_license = st.checkbox("Driving license", value=editor.cv.has_driving_license)
        with col2:
            permit = st.text_input("Work permit", value=editor.cv.work_permit_status)
        if st.form_submit_button("Apply"):
            editor.set_root_field("summary", summary)
            editor.set_root_field("citizenship", citizenship)
            editor.set_root_field("work_permit_status", permit)
            editor.set_root_field("has_driving_license", has_license)


def edit_section(editor: CVEditor, section: SectionKey) -> None:
    """List, reorder, update, remove and add items of one section."""
    fields = ITEM_FORMS[section]
    items = editor.cv.section(section)

    for index, item in enumerate(items):
        with st.expander(f"{index + 1}. {item_label(section, item)}"):
            with st.form(f"{section.value}_{index}_form"):
                patch = {
                    name: render_field(f"{section.value}_{index}_{name}", label, kind, getattr(item, name))
                    for name, label, kind in fields
                }
                if st.form_submit_button("Update"):
                    try:
                        editor.update_item(section, index, patch)
                        st.rerun()
                    except ValidationError as e:
                        st.error(f"Invalid entry: {e.errors()[0]['msg']}")

            col1, col2, col3 = st.columns(3)
            if col1.button("⬆️ Up", key=f"{section.value}_{index}_up", disabled=index == 0):
                editor.move_item(section, index, index - 1)
                st.rerun()
            if col2.button("⬇️ Down", key=f"{section.value}_{index}_down", disabled=index == len(items) - 1):
                editor.move_item(section, index, index + 1)
                st.rerun()
            if col3.button("🗑️ Remove", key=f"{section.value}_{index}_remove"):
                editor.remove_item(section, index)
                st.rerun()

    with st.form(f"{section.value}_add_form", clear_on_submit=True):
        st.markdown(f"**Add to {SECTION_DESCRIPTORS[section].title}**")
        values = {
            name: render_field(f"{section.value}_new_{name}", label, kind)
            for name, label, kind in fields
        }
        if st.form_submit_button("➕ Add"):
            try:
                editor.add_item(section, values)
                st.rerun()
            except ValidationError as e:
                st.error(f"Invalid entry: {e.errors()[0]['msg']}")


def show_export(client: CVBuilderClient, layout: str) -> Optional[Tuple[bytes, str]]:
    """Show the HTML preview and return the PDF and its file name for download."""
    professional_id = st.session_state.professional_id
    try:
        html = client.preview_html(professional_id, layout=layout)
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            st.info("Save the CV to see a preview.")
            return None
        st.error(f"Error rendering preview: {str(e)}")
        return None
    except httpx.HTTPError as e:
        st.error(f"Error communicating with the API: {str(e)}")
        return None

    components.html(html, height=900, scrolling=True)

    try:
        return client.export_pdf(professional_id)
    except httpx.HTTPError as e:
        st.error(f"Error generating PDF: {str(e)}")
        return None


def main():
    """Main Streamlit app."""

    st.markdown('<div class="main-header">📄 CV Builder</div>', unsafe_allow_html=True)

    with st.sidebar:
        st.header("🔧 Configuration")
        api_url = st.text_input(
            "API URL",
            value=API_BASE_URL,
            help="Base URL of the FastAPI server"
        )
        client = get_client(api_url)

        st.divider()

        st.header("🔍 Server Status")
        if client.is_healthy():
            st.success("✅ FastAPI server is running")
        else:
            st.error("❌ FastAPI server is not running")
            st.info("💡 Run `uvicorn cv_builder.main:app` in another terminal")

        st.divider()

        professional_id = st.text_input("Professional ID", value="demo-professional")
        if st.button("📂 Load CV", use_container_width=True):
            load_into_session(client, professional_id)

    if "editor" not in st.session_state:
        st.info("Enter a professional ID and load a CV to start editing.")
        return

    editor: CVEditor = st.session_state.editor

    edit_tab, preview_tab = st.tabs(["✏️ Edit", "👁️ Preview"])

    with edit_tab:
        edit_root(editor)
        for section in SectionKey:
            st.subheader(SECTION_DESCRIPTORS[section].title)
            edit_section(editor, section)

        st.divider()
        if st.button("💾 Save CV", use_container_width=True, type="primary"):
            save_from_session(client)

    with preview_tab:
        layout = st.radio("Layout", ["preview", "print"], horizontal=True)
        export = show_export(client, layout)
        if export:
            pdf_bytes, filename = export
            st.download_button(
                label="📥 Download PDF",
                data=pdf_bytes,
                file_name=filename,
                mime="application/pdf",
                use_container_width=True,
                type="primary",
                key="cv_download"
            )

            # Embed PDF using base64 encoding
            base64_cv = base64.b64encode(pdf_bytes).decode('utf-8')
            st.markdown(
                f'<iframe src="data:application/pdf;base64,{base64_cv}" width="100%" height="800px" type="application/pdf"></iframe>',
                unsafe_allow_html=True
            )


if __name__ == "__main__":
    main()
