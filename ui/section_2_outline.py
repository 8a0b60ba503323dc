# -*- coding: utf-8 -*-
import streamlit as st

from core.characters import extract_characters, extract_scenes, generate_portrait, generate_portraits
from core.gemini_image import decode_data_url
from core.project_store import KIND_CHARACTER, KIND_SCENE
from ui.runtime import get_store, run_op

CHARACTER_FIELDS = ["name", "age", "role", "personality", "appearance", "visual_prompt"]
SCENE_FIELDS = ["name", "location", "time_of_day", "description", "atmosphere", "visual_prompt"]


def _render_outline_choice(store):
    proj = store.project
    if proj.outline_options:
        labels = [f"Option {chr(65 + i)}" for i in range(len(proj.outline_options))]
        pick = st.radio("Outline options", labels, horizontal=True, key="pick_outline")
        idx = labels.index(pick)
        st.markdown(proj.outline_options[idx])
        if st.button("✅ Use this outline"):
            store.set_outline(proj.outline_options[idx])

    outline = st.text_area("Outline (editable, Markdown)", value=proj.outline, height=300)
    if outline != proj.outline:
        store.set_outline(outline)


def _render_record(client, store, kind: str, record, fields):
    loading = record.image_loading
    with st.expander(f"{record.name}" + (" ⏳" if loading else ""), expanded=False):
        col1, col2 = st.columns([2, 1])
        with col1:
            changes = {}
            for f in fields:
                value = getattr(record, f) or ""
                widget = st.text_area if f in ("personality", "appearance", "description", "visual_prompt") else st.text_input
                new = widget(f.replace("_", " ").title(), value=value, key=f"{kind}_{record.id}_{f}")
                if new != value:
                    changes[f] = new
            if changes:
                store.update_record(kind, record.id, **changes)
            if st.button("🗑️ Remove", key=f"{kind}_{record.id}_remove"):
                store.remove_record(kind, record.id)
                st.rerun()
        with col2:
            if record.image_url:
                st.image(decode_data_url(record.image_url)[1], use_container_width=True)
            # one call per id at a time: the button is disabled while loading
            if st.button("🎨 Generate image", key=f"{kind}_{record.id}_img", disabled=not client or loading):
                run_op(f"Drawing {record.name}…", generate_portrait(client, store, kind, record.id))
                st.rerun()


def render_section_2(client):
    st.header("2) Outline, characters & scenes")
    store = get_store()
    _render_outline_choice(store)
    proj = store.project
    if not proj.outline:
        st.info("Pick or write an outline to continue.")
        return

    st.subheader("🧑‍🤝‍🧑 Characters")
    colC1, colC2 = st.columns(2)
    with colC1:
        if st.button("🧠 Extract characters", disabled=not client):
            run_op("Extracting characters…", extract_characters(client, store))
    with colC2:
        if st.button("🎨 Images for all characters", disabled=not (client and proj.characters)):
            ids = [c.id for c in proj.characters if not c.image_loading]
            results = run_op("Drawing characters…", generate_portraits(client, store, KIND_CHARACTER, ids)) or {}
            failed = [rid for rid, res in results.items() if isinstance(res, Exception)]
            if failed:
                st.warning(f"{len(failed)} image(s) failed; previous images were kept.")
    for c in list(store.project.characters):
        _render_record(client, store, KIND_CHARACTER, c, CHARACTER_FIELDS)

    st.subheader("🏞️ Scenes")
    if st.button("🧠 Extract scenes", disabled=not client):
        run_op("Extracting scenes…", extract_scenes(client, store))
    for s in list(store.project.scenes):
        _render_record(client, store, KIND_SCENE, s, SCENE_FIELDS)
