import streamlit as st

from core.config import StudioSettings
from core.data_models import Project
from core.env_loader import (
    clear_runtime_key, get_key_info, load_env, set_runtime_key, validate_key_format, write_dotenv_key,
)
from core.errors import BatchAlreadyRunning
from core.project_io import export_doc, export_txt, export_zip, list_projects, load_project, save_project
from core.text_utils import _safe_name
from ui.runtime import forget_widgets, get_store, reset_caches_and_rerun

PROJECT_WIDGETS = ("plan_title_", "plan_sum_", "ep_text_")


def _render_key_manager():
    with st.sidebar.expander("🔐 API Key (GEMINI_API_KEY)", expanded=not load_env()):
        current_key = load_env()
        st.caption(f"Current: {get_key_info(current_key)}")

        new_key = st.text_input(
            "New key (not kept until you press a button below)",
            type="password",
            placeholder="paste GEMINI_API_KEY here…",
            key="api_key_entry_sidebar",
        )

        colK1, colK2 = st.columns(2)
        with colK1:
            if st.button("⚡ Use for this session"):
                if not validate_key_format(new_key):
                    st.warning("Key is empty or malformed.")
                else:
                    set_runtime_key(new_key)
                    reset_caches_and_rerun()
        with colK2:
            if st.button("💾 Save to .env"):
                if not validate_key_format(new_key):
                    st.warning("Key is empty or malformed.")
                elif write_dotenv_key(new_key):
                    reset_caches_and_rerun()
                else:
                    st.error("Could not write .env. Check file permissions.")

        if st.button("🧽 Drop session override"):
            clear_runtime_key()
            reset_caches_and_rerun()


def _render_project_files():
    store = get_store()
    st.sidebar.markdown("---")
    st.sidebar.subheader("📁 Project")

    name = st.sidebar.text_input("Project name", value=store.project.name)
    if name != store.project.name:
        store.set_name(name)

    proj_files = list_projects()
    if proj_files:
        sel_file = st.sidebar.selectbox("Open project", ["(choose)"] + [f.name for f in proj_files])
        if sel_file != "(choose)" and st.sidebar.button("📂 Open"):
            try:
                store.load(load_project(sel_file))
                forget_widgets(*PROJECT_WIDGETS)
                st.sidebar.success(f"Opened {sel_file}")
            except BatchAlreadyRunning as e:
                st.sidebar.warning(str(e))

    colP1, colP2 = st.sidebar.columns(2)
    with colP1:
        if st.button("💾 Save", type="primary"):
            f = save_project(store.project)
            st.sidebar.success(f"Saved: {f.name}")
    with colP2:
        if st.button("🆕 New"):
            try:
                store.load(Project())
                forget_widgets(*PROJECT_WIDGETS)
                st.session_state.batch_skip = []
                st.session_state.batch_decision = None
            except BatchAlreadyRunning as e:
                st.sidebar.warning(str(e))

    st.sidebar.markdown("---")
    st.sidebar.subheader("📦 Export")
    proj = store.project
    base = _safe_name(proj.name) or "script"
    st.sidebar.download_button("⬇️ Text (.txt)", data=export_txt(proj), file_name=f"{base}.txt")
    st.sidebar.download_button("⬇️ Word (.doc)", data=export_doc(proj), file_name=f"{base}.doc", mime="application/msword")
    if st.sidebar.button("Build ZIP"):
        st.sidebar.download_button("⬇️ project.zip", data=export_zip(proj), file_name=f"{base}.zip")


def render_sidebar(settings: StudioSettings) -> StudioSettings:
    st.sidebar.title("⚙️ Settings")
    _render_key_manager()

    text_model = st.sidebar.selectbox("Text model", ["gemini-2.5-flash", "gemini-2.5-pro"])
    custom_model = st.sidebar.text_input("Custom text model", value="", help="e.g. gemini-2.5-flash-lite")
    image_model = st.sidebar.text_input("Image model", value=settings.image_model)

    _render_project_files()

    if not load_env():
        st.sidebar.error("No GEMINI_API_KEY found in the environment or .env.")

    return settings.model_copy(update={"text_model": custom_model or text_model, "image_model": image_model})
