import streamlit as st

from core.config import load_settings
from core.env_loader import load_env, setup_logging
from core.project_store import ProjectStore

from ui.runtime import init_client
from ui.sidebar import render_sidebar
from ui.section_1_idea import render_section_1
from ui.section_2_outline import render_section_2
from ui.section_3_episode import render_section_3

settings = load_settings()
setup_logging(settings.log_level)
st.set_page_config(page_title="Gemini Script Studio", page_icon="🎬", layout="wide")

# Session init
if "store" not in st.session_state:
    st.session_state.store = ProjectStore()
if "batch_skip" not in st.session_state:
    st.session_state.batch_skip = []
if "batch_decision" not in st.session_state:
    st.session_state.batch_decision = None

# Load .env and init client
api_key = load_env()
settings = render_sidebar(settings)   # also handles key/load/save/export UI
client = init_client(api_key, settings.model_dump_json()) if api_key else None

st.title("🎬 Gemini Script Studio")

# Sections
render_section_1(client)
render_section_2(client)
render_section_3(client, settings)
