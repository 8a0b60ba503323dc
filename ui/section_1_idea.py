import streamlit as st

from core.outline import analyze_text, generate_outline_options
from core.presets import GENRES
from ui.runtime import get_store, run_op


def render_section_1(client):
    st.header("1) Idea & genre → 3 outline options")
    store = get_store()
    proj = store.project

    # Genre: registry entries plus whatever free text the project already carries
    options = list(GENRES)
    if proj.genre and proj.genre not in options:
        options.append(proj.genre)
    genre = st.selectbox("Genre", options, index=options.index(proj.genre) if proj.genre in options else 0)
    if genre != proj.genre:
        store.set_genre(genre)

    idea = st.text_area(
        "Story idea",
        height=120,
        value=proj.idea,
        placeholder="e.g. A disgraced detective wakes up thirty years in the past, the night before her father's murder…",
    )
    if idea != proj.idea:
        store.set_idea(idea)

    if st.button("✨ Generate 3 outlines", disabled=not bool(client and idea)):
        opts = run_op("Generating outlines…", generate_outline_options(client, store))
        if opts is not None and not opts:
            st.error("The model returned no outlines. Try again.")

    with st.expander("📄 Start from an existing text instead"):
        source = st.text_area("Paste a script or story", height=200, key="analyze_source")
        if st.button("🔍 Analyze & rewrite", disabled=not bool(client and source)):
            data = run_op("Analyzing…", analyze_text(client, store, source))
            if data:
                st.success("Idea, genre and outline extracted.")
