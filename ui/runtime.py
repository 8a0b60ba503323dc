import asyncio

import streamlit as st

from core.config import StudioSettings
from core.errors import ConfigurationError, StudioError
from core.gemini_helpers import GenerationClient
from core.project_store import ProjectStore


def get_store() -> ProjectStore:
    return st.session_state.store


def run_async(coro):
    """Streamlit scripts are synchronous; each async core call gets its own loop."""
    return asyncio.run(coro)


def run_op(label: str, coro):
    """
    Run one single-shot operation under a spinner. Failures become one terse
    error message; the project keeps whatever it had before.
    """
    with st.spinner(label):
        try:
            return run_async(coro)
        except ConfigurationError as e:
            st.error(f"🔐 {e}")
        except StudioError as e:
            st.error(f"{label.rstrip('.… ')} failed: {e}")
        except ValueError as e:
            st.warning(str(e))
    return None


def forget_widgets(*prefixes: str):
    """Drop keyed widget state so editors re-read the project after it changed underneath them."""
    for key in [k for k in st.session_state.keys() if isinstance(k, str) and k.startswith(prefixes)]:
        del st.session_state[key]


def reset_caches_and_rerun():
    st.cache_resource.clear()
    st.cache_data.clear()
    st.rerun()


@st.cache_resource(show_spinner=False)
def init_client(api_key: str, settings_json: str):
    if not api_key:
        return None
    return GenerationClient(api_key=api_key, settings=StudioSettings.model_validate_json(settings_json))
