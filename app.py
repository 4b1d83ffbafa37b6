"""
Chinese AI Coach – Streamlit entry point.
UI and session-state wiring; logic lives in constants, config, errors, prompts,
schema, ai, client, store, prefetch, state.
"""
import html
import logging

import streamlit as st

import constants
from client import get_gateway
from config import get_config
from errors import ErrorHandler, PersistenceError, ResponseShapeError
from schema import CandidateRecord, DetailRecord, normalize_detail
from state import Phase, SessionCoordinator
from store import SavedEntry, get_store
from ui_styles import APP_STYLES_HTML

logger = logging.getLogger(__name__)

# ==========================================
# Page Configuration
# ==========================================
st.set_page_config(
    page_title=f"{constants.APP_TITLE} · 中国語単語帳",
    page_icon="🈶",
    layout="centered",
    initial_sidebar_state="collapsed"
)

# Logging: ensure root logger has a handler when running as main app
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s:%(name)s:%(message)s",
    )

for key, default_value in constants.DEFAULT_SESSION_STATE.items():
    if key not in st.session_state:
        st.session_state[key] = default_value

st.markdown(APP_STYLES_HTML, unsafe_allow_html=True)


def get_coordinator() -> SessionCoordinator:
    """One coordinator per browser session; saved words are read once on start."""
    coordinator = st.session_state.get("coordinator")
    if coordinator is None:
        cfg = get_config()
        coordinator = SessionCoordinator(get_gateway(), get_store(), user_id=cfg["vocab_user_id"])
        coordinator.load_saved()
        st.session_state["coordinator"] = coordinator
    return coordinator


def _render_notice(coordinator: SessionCoordinator) -> None:
    notice = coordinator.state.notice
    if notice is None:
        return
    if notice.level == "success":
        st.toast(notice.message, icon="✅")
    elif notice.level == "warning":
        st.warning(notice.message)
    else:
        st.error(notice.message)
    coordinator.clear_notice()


def _render_candidate_button(coordinator: SessionCoordinator, cand: CandidateRecord, index: int) -> None:
    stars = "★" * cand.recommendation + "☆" * (constants.MAX_RECOMMENDATION - cand.recommendation)
    selected = coordinator.state.selected_word == cand.zh
    cached = coordinator.cached(cand.zh) is not None
    label = f"{cand.zh}　{cand.pinyin}" + ("　✓" if cached and not selected else "")
    if st.button(label, key=f"cand_{index}", type="primary" if selected else "secondary", use_container_width=True):
        coordinator.select_candidate(cand.zh)
        st.rerun()
    st.markdown(
        f'<div class="coach-cand-meta"><span class="coach-usage">{html.escape(cand.usage)}</span> '
        f'{stars} {html.escape(cand.jp_meaning)}</div>',
        unsafe_allow_html=True,
    )


def render_candidates(coordinator: SessionCoordinator) -> None:
    candidates = coordinator.state.candidates
    if not candidates:
        return
    st.caption(f"「{coordinator.state.term}」に当たる中国語の候補（{len(candidates)}件）")
    for i, cand in enumerate(candidates):
        _render_candidate_button(coordinator, cand, i)


def _example_html(ex) -> str:
    note = f'<div class="note">💡 {html.escape(ex.note)}</div>' if ex.note else ""
    return (
        '<div class="coach-ex">'
        f'<div class="scenario">→ {html.escape(ex.scenario)}</div>'
        f'<div class="zh">{html.escape(ex.zh)}</div>'
        f'<div class="jp">{html.escape(ex.jp)}</div>'
        f"{note}</div>"
    )


def render_detail(coordinator: SessionCoordinator, detail: DetailRecord) -> None:
    head_col, save_col = st.columns([4, 1.4])
    with head_col:
        st.markdown(
            f'<div class="coach-head"><span class="coach-word">{html.escape(detail.word)}</span>'
            f'<span class="coach-pinyin">{html.escape(detail.pinyin)}</span></div>',
            unsafe_allow_html=True,
        )
    with save_col:
        already_saved = coordinator.find_saved(detail.word) is not None
        if st.button("✓ 保存済み" if already_saved else "＋ 単語帳に保存", key="save_word", disabled=already_saved):
            coordinator.save_current()
            st.rerun()

    for i, meaning in enumerate(detail.meanings):
        st.markdown(
            f'<span class="coach-pos">{html.escape(meaning.part_of_speech)}</span>'
            f'<span class="coach-short">{html.escape(meaning.short_definition)}</span>',
            unsafe_allow_html=True,
        )
        if meaning.definition:
            st.markdown(f'<div class="coach-def">{html.escape(meaning.definition)}</div>', unsafe_allow_html=True)

        # First meaning is always open; the rest follow the coordinator's flags.
        expanded = i == 0 or i in coordinator.state.expanded_meanings
        if expanded:
            st.markdown("".join(_example_html(ex) for ex in meaning.examples), unsafe_allow_html=True)
        if i > 0 and meaning.examples:
            if st.button("例文を閉じる" if expanded else f"例文を見る（{len(meaning.examples)}）", key=f"toggle_meaning_{i}"):
                coordinator.toggle_meaning(i)
                st.rerun()

    syn_col, tips_col = st.columns(2)
    with syn_col:
        st.markdown("**類義語**")
        for syn in detail.synonyms:
            st.markdown(f"**{syn.word}** `{syn.pinyin}`：{syn.nuance}")
    with tips_col:
        st.markdown("**使い分けのコツ**")
        st.write(detail.usage_tips)
        if detail.summary:
            tags = "".join(f'<span class="coach-tag">#{html.escape(t)}</span>' for t in detail.summary)
            st.markdown(tags, unsafe_allow_html=True)


def render_search(coordinator: SessionCoordinator) -> None:
    loading = coordinator.phase is Phase.LOADING
    model_label = get_config()["openai_model_display"]

    with st.form("search_form", clear_on_submit=False, border=False):
        col_word, col_btn = st.columns([4, 1.4])
        with col_word:
            word = st.text_input(
                "調べたい中国語",
                placeholder="調べたい中国語（または日本語）を入力...",
                key="search_word",
                label_visibility="collapsed",
                autocomplete="off",
            )
        with col_btn:
            submitted = st.form_submit_button(
                "解析中..." if loading else f"🔍 {model_label}",
                type="primary",
                use_container_width=True,
                disabled=loading,
            )

    if submitted:
        with st.spinner("AIが解析中..."):
            coordinator.search(word)

    _render_notice(coordinator)

    state = coordinator.state
    if state.phase in (Phase.CANDIDATE_LIST, Phase.DETAIL_SHOWN) and state.candidates:
        render_candidates(coordinator)
        st.markdown("---")
    if state.phase is Phase.DETAIL_SHOWN and state.detail is not None:
        render_detail(coordinator, state.detail)


def _saved_summary(entry: SavedEntry) -> str:
    try:
        detail = normalize_detail(entry.data)
    except ResponseShapeError as e:
        logger.warning("Saved entry %s unreadable: %s", entry.id, e.details)
        return ""
    if detail.meanings:
        return detail.meanings[0].short_definition
    return ""


def render_library(coordinator: SessionCoordinator) -> None:
    saved = coordinator.state.saved
    st.subheader(f"📖 保存した単語 ({len(saved)})")
    _render_notice(coordinator)
    if not saved:
        st.info("保存された単語はありません。")
        return

    for entry in saved:
        col_word, col_show, col_del = st.columns([4, 1, 1])
        with col_word:
            pinyin = entry.data.get("pinyin", "") if isinstance(entry.data, dict) else ""
            st.markdown(f"**{entry.word}**　{pinyin}")
            st.caption(_saved_summary(entry))
        with col_show:
            if st.button("表示", key=f"show_{entry.id}"):
                coordinator.open_saved(entry.id)
                st.session_state["_pending_view"] = "search"
                st.rerun()
        with col_del:
            if st.session_state["confirm_delete_id"] == entry.id:
                if st.button("削除する", key=f"confirm_{entry.id}", type="primary"):
                    coordinator.delete_saved(entry.id)
                    st.session_state["confirm_delete_id"] = None
                    st.rerun()
            elif st.button("🗑️", key=f"delete_{entry.id}"):
                st.session_state["confirm_delete_id"] = entry.id
                st.rerun()


# ==========================================
# Layout
# ==========================================
st.title(f"🈶 {constants.APP_TITLE}")

try:
    coordinator = get_coordinator()
except PersistenceError as e:
    ErrorHandler.handle(e, constants.NOTICE_LIST_FAILED)
    st.stop()

# Switch view before the radio widget is created.
pending_view = st.session_state.pop("_pending_view", "")
if pending_view:
    st.session_state["view"] = pending_view

view = st.radio(
    "view",
    options=["search", "library"],
    format_func=lambda v: "🔍 検索" if v == "search" else "📖 単語帳",
    horizontal=True,
    key="view",
    label_visibility="collapsed",
)

if view == "search":
    render_search(coordinator)
else:
    render_library(coordinator)

st.caption(f"© {constants.APP_TITLE}. Powered by {get_config()['openai_model_display']}.")
