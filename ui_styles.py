# UI styles for Chinese AI Coach. Loaded once in app.py.

APP_STYLES_HTML = """
<style>
    /* ===== Global: hide Streamlit chrome, CJK-friendly font stack ===== */
    #MainMenu, footer, header {visibility: hidden;}
    .stApp {
        font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', 'Hiragino Sans',
                     'Noto Sans CJK SC', 'Noto Sans CJK JP', 'Microsoft YaHei', sans-serif;
        -webkit-font-smoothing: antialiased;
        font-size: 18px;
    }
    .main .block-container {
        padding-left: max(1rem, env(safe-area-inset-left));
        padding-right: max(1rem, env(safe-area-inset-right));
        max-width: 860px;
    }

    /* ===== Buttons ===== */
    .stButton>button {
        border-radius: 10px; font-weight: 600; width: 100%; margin-top: 4px;
        box-shadow: 0 1px 3px rgba(0,0,0,0.08);
        min-height: 44px;
    }
    .stButton>button:hover {
        transform: translateY(-1px);
        box-shadow: 0 4px 12px rgba(0,0,0,0.10);
    }
    .stTextInput input {
        min-height: 50px;
        font-size: 19px;
    }

    /* ===== Detail card ===== */
    .coach-head { display: flex; align-items: baseline; gap: 14px; margin-bottom: 6px; }
    .coach-word { font-size: 2.6rem; font-weight: 700; line-height: 1.1; }
    .coach-pinyin { font-size: 1.3rem; color: #64748b; font-weight: 500; }
    .coach-pos {
        display: inline-block; padding: 2px 10px; margin-right: 8px;
        border-radius: 999px; font-size: 0.8rem; font-weight: 700;
        background: rgba(99,102,241,0.12); color: #4f46e5;
        border: 1px solid rgba(99,102,241,0.3);
    }
    .coach-short { font-size: 1.15rem; font-weight: 600; }
    .coach-def { color: #475569; font-size: 0.95rem; margin: 4px 0 8px 0; white-space: pre-line; }
    .coach-ex {
        background: #f8fafc; border: 1px solid #e2e8f0; border-radius: 12px;
        padding: 10px 14px; margin: 8px 0;
    }
    .coach-ex .scenario { color: #6366f1; font-size: 0.75rem; font-weight: 700; }
    .coach-ex .zh { font-size: 1.2rem; font-weight: 500; }
    .coach-ex .jp { color: #64748b; }
    .coach-ex .note { color: #94a3b8; font-size: 0.8rem; font-style: italic; }
    .coach-tag {
        display: inline-block; font-size: 0.7rem; background: #1e293b; color: #cbd5e1;
        padding: 2px 8px; border-radius: 6px; margin: 2px 4px 2px 0;
    }

    /* ===== Candidate list ===== */
    .coach-cand-meta { color: #64748b; font-size: 0.85rem; }
    .coach-usage {
        display: inline-block; font-size: 0.7rem; font-weight: 700; padding: 1px 6px;
        border-radius: 4px; background: #ecfeff; color: #0e7490; border: 1px solid #a5f3fc;
    }
</style>
"""
