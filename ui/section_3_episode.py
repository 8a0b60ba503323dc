# -*- coding: utf-8 -*-
import streamlit as st

from core.batch import BatchDecision, BatchStatus, always, run_batch
from core.episodes import extend_plan, generate_one, plan_episodes
from core.errors import BatchAlreadyRunning, InvalidEpisodeNumber
from core.script_bible import generate_bible
from ui.runtime import forget_widgets, get_store, run_async, run_op

PLAN_WIDGETS = ("plan_title_", "plan_sum_")
EPISODE_WIDGETS = ("ep_text_",)
POLICY_ASK = "Ask me"
POLICY_SKIP = "Skip it and continue"
POLICY_STOP = "Stop the batch"


def _render_plan_empty(client, store):
    st.write("Set the number of episodes and let the model build the season structure.")
    count = st.number_input("Target episodes", min_value=1, max_value=200, value=12, step=1)
    if st.button("🧭 Plan episodes", disabled=not client):
        plan = run_op("Planning episodes…", plan_episodes(client, store, int(count)))
        forget_widgets(*PLAN_WIDGETS)
        if plan is not None and len(plan) != int(count):
            st.warning(f"Asked for {int(count)} episodes, got {len(plan)}.")


def _render_plan_editor(client, store):
    proj = store.project
    with st.expander(f"🗂️ Episode plan ({len(proj.episode_plan)} episodes)"):
        for e in list(proj.episode_plan):
            colA, colB, colC = st.columns([1, 6, 1])
            with colA:
                st.markdown(f"**{e.number}**" + (" ✅" if e.number in proj.episodes else ""))
            with colB:
                title = st.text_input("Title", value=e.title, key=f"plan_title_{e.number}", label_visibility="collapsed")
                if title != e.title:
                    store.update_title(e.number, title)
                summary = st.text_area("Summary", value=e.summary, key=f"plan_sum_{e.number}", height=80)
                if summary != e.summary:
                    store.update_summary(e.number, summary)
            with colC:
                if st.button("🗑️", key=f"plan_del_{e.number}", help="Delete and renumber"):
                    try:
                        store.delete_entry(e.number)
                        forget_widgets(*PLAN_WIDGETS, *EPISODE_WIDGETS)
                    except (InvalidEpisodeNumber, BatchAlreadyRunning) as err:
                        st.warning(str(err))
                    st.rerun()

        colX1, colX2, colX3 = st.columns(3)
        with colX1:
            if st.button("➕ Blank episode"):
                store.append_blank_entry()
                st.rerun()
        with colX2:
            n_more = st.number_input("Extend by", min_value=1, max_value=50, value=3, step=1)
            if st.button("🔭 Extend story", disabled=not client):
                run_op("Extending the plan…", extend_plan(client, store, int(n_more)))
        with colX3:
            if st.button("♻️ Reset plan", help="Clears plan, episodes and bible"):
                try:
                    store.reset_plan()
                    forget_widgets(*PLAN_WIDGETS, *EPISODE_WIDGETS)
                    st.session_state.batch_skip = []
                    st.session_state.batch_decision = None
                except BatchAlreadyRunning as err:
                    st.warning(str(err))
                st.rerun()


def _start_batch(client, store, settings, policy: str):
    bar = st.progress(0.0, text="Starting…")

    def on_progress(p):
        bar.progress(p.current / p.total, text=f"{p.current}/{p.total} episodes")

    def ask_later(request):
        # a Streamlit run cannot wait for a click: stop here, ask on the next rerun
        st.session_state.batch_decision = {
            "number": request.number,
            "title": request.title,
            "remaining": request.remaining,
            "message": request.message,
        }
        return BatchDecision.ABORT

    decide = {
        POLICY_SKIP: always(BatchDecision.CONTINUE),
        POLICY_STOP: always(BatchDecision.ABORT),
    }.get(policy, ask_later)

    result = run_async(run_batch(
        client, store, decide, settings=settings,
        on_progress=on_progress, exclude=st.session_state.batch_skip,
    ))
    if result.status is BatchStatus.NOTHING_PENDING:
        st.success("All episodes are written!")
    elif result.status is BatchStatus.ALREADY_RUNNING:
        st.info("A batch is already running.")
    elif result.status is BatchStatus.FAILED:
        st.error(f"The batch stopped on an unexpected error ({result.error}). Written episodes are kept; run it again to continue.")
    elif result.status is BatchStatus.ABORTED and policy != POLICY_ASK:
        st.warning(f"Stopped at episode {result.failed_number}.")
    elif result.status is BatchStatus.COMPLETED:
        msg = f"Done: {len(result.generated)} written"
        if result.skipped:
            msg += f", skipped {result.skipped}"
        st.success(msg + ".")


def _render_pending_decision():
    req = st.session_state.batch_decision
    if not req:
        return False
    st.warning(
        f"Episode {req['number']} ({req['title']}) failed several times in a row "
        f"(network or content filter: {req['message']}). Skip it and continue with the "
        f"{req['remaining']} remaining episode(s)?"
    )
    colD1, colD2 = st.columns(2)
    with colD1:
        if st.button("⏭️ Skip and continue", type="primary"):
            st.session_state.batch_skip = st.session_state.batch_skip + [req["number"]]
            st.session_state.batch_decision = None
            st.session_state.resume_batch = True
            st.rerun()
    with colD2:
        if st.button("⏹️ Stop"):
            st.session_state.batch_decision = None
            st.rerun()
    return True


def _render_batch(client, store, settings):
    pending = store.pending_numbers(st.session_state.batch_skip)
    st.caption(f"Pending: {len(pending)} episode(s)" + (f" · skipped this session: {st.session_state.batch_skip}" if st.session_state.batch_skip else ""))
    policy = st.radio("When an episode keeps failing", [POLICY_ASK, POLICY_SKIP, POLICY_STOP], horizontal=True)

    if _render_pending_decision():
        return
    resume = st.session_state.pop("resume_batch", False)
    if resume or st.button("🚀 Write all pending episodes", disabled=not client or not pending):
        _start_batch(client, store, settings, policy)
    if st.session_state.batch_skip and st.button("↩️ Retry skipped episodes"):
        st.session_state.batch_skip = []
        st.rerun()


def _render_episode(client, store, number: int):
    proj = store.project
    entry = proj.plan_entry(number)
    st.markdown(f"### Episode {entry.number}: {entry.title}")
    st.caption(entry.summary)
    has_text = number in proj.episodes

    colE1, colE2 = st.columns(2)
    with colE1:
        label = "🔁 Rewrite" if has_text else "✍️ Write"
        if st.button(label, disabled=not client, key=f"write_{number}"):
            run_op(f"Writing episode {number}…", generate_one(client, store, number))
            forget_widgets(f"ep_text_{number}")
            st.rerun()
    with colE2:
        if has_text and st.button("🧹 Clear (mark pending)", key=f"clear_{number}"):
            store.clear_episode(number)
            st.rerun()

    if has_text:
        text = st.text_area("Script", value=proj.episodes[number], height=500, key=f"ep_text_{number}")
        if text != proj.episodes[number]:
            store.set_episode(number, text)
    else:
        st.info("Not written yet.")


def _render_bible(client, store):
    proj = store.project
    if st.button("📚 Generate series bible", disabled=not client):
        run_op("Writing the bible…", generate_bible(client, store))
    bible = st.text_area("Series bible (Markdown)", value=proj.script_bible, height=400)
    if bible != proj.script_bible:
        store.set_bible(bible)


def render_section_3(client, settings):
    st.header("3) Episodes")
    store = get_store()
    proj = store.project
    if not proj.outline:
        st.info("No outline yet. Finish step 2 first.")
        return

    if not proj.episode_plan:
        _render_plan_empty(client, store)
        return

    _render_plan_editor(client, store)
    _render_batch(client, store, settings)

    tabs = ["📚 Bible"] + [f"{e.number:02d}" for e in proj.episode_plan]
    pick = st.selectbox("Open", tabs)
    if pick == tabs[0]:
        _render_bible(client, store)
    else:
        _render_episode(client, store, int(pick))
