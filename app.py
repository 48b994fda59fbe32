"""
SiteSentinel — Streamlit Application
Single-page trust and quality analyzer with link discovery and risk scoring.
"""
from __future__ import annotations

from datetime import datetime

import pandas as pd
import streamlit as st

from analyzers.orchestrator import run_analysis
from config import DEFAULT_REQUEST_TIMEOUT, USER_AGENT_PRESETS
from crawler.urls import hostname_of, validate_url
from log import get_logger, setup_logging
from models import AnalysisConfig, CategoryResult, CheckStatus, OverallResult
from reporting.exporter import (
    categories_to_df,
    checks_to_df,
    link_status_counts,
    scored_links_to_df,
    to_csv_bytes,
)
from ui.charts import category_scores_bar, link_status_donut, overall_score_gauge, reference_sources_bar

setup_logging()
logger = get_logger(__name__)

# ── Page config ────────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="SiteSentinel",
    page_icon="🛡️",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ── Custom CSS ─────────────────────────────────────────────────────────────────
st.markdown("""
<style>
.block-container { padding-top: 1rem; }

.metric-card {
    background: #1A1D27;
    border-radius: 10px;
    padding: 1rem 1.2rem;
    margin-bottom: 0.5rem;
    border-left: 4px solid;
}
.metric-card.critical { border-color: #dc2626; }
.metric-card.warning  { border-color: #f59e0b; }
.metric-card.info     { border-color: #3b82f6; }
.metric-card.success  { border-color: #10b981; }
.metric-card.neutral  { border-color: #6C63FF; }

.metric-val  { font-size: 2rem; font-weight: 700; margin: 0; }
.metric-lbl  { font-size: 0.8rem; color: #888; text-transform: uppercase; letter-spacing: 0.05em; }

.threat-banner {
    background: #dc262622; border: 1px solid #dc2626; color: #fca5a5;
    border-radius: 10px; padding: 0.8rem 1.2rem; font-weight: 600;
}

.modebar { display: none !important; }

.sidebar-logo { font-size: 1.5rem; font-weight: 800; color: #6C63FF; margin-bottom: 0.5rem; }
</style>
""", unsafe_allow_html=True)


# ── State helpers ──────────────────────────────────────────────────────────────

def _clear_results():
    st.session_state.pop("analysis_result", None)


def _has_result() -> bool:
    return st.session_state.get("analysis_result") is not None


# ── Sidebar ────────────────────────────────────────────────────────────────────

def render_sidebar() -> tuple[str, AnalysisConfig] | None:
    base = AnalysisConfig.from_env()

    with st.sidebar:
        st.markdown('<div class="sidebar-logo">🛡️ SiteSentinel</div>', unsafe_allow_html=True)
        st.caption("Website trust & link safety analyzer")
        st.divider()

        st.subheader("Target")
        target = st.text_input("Page URL", placeholder="https://example.com", help="Scheme defaults to https://")

        st.subheader("Link Discovery")
        dynamic = st.toggle(
            "Headless-browser discovery", value=base.enable_dynamic_extraction,
            help="Render the page in Chromium, click its controls and record every navigation attempt",
        )
        probes = st.toggle(
            "Probe external links", value=base.enable_link_probes,
            help="HEAD each external link (first 50) to detect broken or unreachable targets",
        )
        keyword_heuristic = st.toggle(
            "Keyword malware heuristic", value=base.keyword_malware_heuristic,
            help="Flags pages whose text mentions malware terms. Prone to false positives.",
        )

        st.subheader("Advanced")
        timeout = st.slider("Request timeout (s)", 5, 60, base.request_timeout or DEFAULT_REQUEST_TIMEOUT, 5)
        ua_label = st.selectbox("Fetch as", options=list(USER_AGENT_PRESETS.keys()), index=0)
        user_agent = USER_AGENT_PRESETS[ua_label]
        st.caption(f"`{user_agent}`")
        st.caption("Safe Browsing: " + ("configured ✅" if base.safe_browsing_api_key else "no API key"))

        st.divider()

        if _has_result():
            if st.button("🔄 New Analysis", type="primary", use_container_width=True):
                _clear_results()
                st.rerun()
            st.divider()

        start = st.button("Analyze", type="primary", use_container_width=True)

    if start and target:
        config = AnalysisConfig.from_env(
            enable_dynamic_extraction=dynamic,
            enable_link_probes=probes,
            keyword_malware_heuristic=keyword_heuristic,
            request_timeout=timeout,
            user_agent=user_agent,
        )
        return target, config

    return None


# ── Run analysis ───────────────────────────────────────────────────────────────

def run(target: str, config: AnalysisConfig) -> None:
    if not validate_url(target):
        st.error("Invalid URL format. Please provide a valid HTTP or HTTPS URL.")
        return

    progress_bar = st.progress(0)
    status_text = st.empty()

    def on_progress(update: dict):
        progress_bar.progress(min(update.get("pct", 0), 100))
        status_text.markdown(f"**{update.get('message', '')}**")

    with st.status("Running analysis…", expanded=True) as status_widget:
        st.write(f"Analysing **{target}** across all categories…")
        try:
            result = run_analysis(target, config, progress_callback=on_progress)
        except Exception as exc:
            logger.exception("Analysis failed for %s", target)
            status_widget.update(label="Analysis failed", state="error")
            st.error(f"Analysis failed: {exc}")
            return
        status_widget.update(label="Analysis complete!", state="complete")

    progress_bar.empty()
    status_text.empty()

    st.session_state.analysis_result = result
    st.rerun()


# ── Dashboard: Overview ────────────────────────────────────────────────────────

def render_overview(result: OverallResult) -> None:
    if result.threat_detected:
        flagged = ", ".join(c.category for c in result.categories if c.threat_detected)
        st.markdown(
            f'<div class="threat-banner">⛔ Confirmed threat signal in: {flagged}. '
            f'The overall score is forced to 0.</div>',
            unsafe_allow_html=True,
        )

    col_gauge, col_stats = st.columns([1, 2])

    with col_gauge:
        st.plotly_chart(overall_score_gauge(result.score, result.threat_detected), use_container_width=True)
        st.markdown(
            f'<div style="text-align:center;font-size:1.1rem;font-weight:700;color:{result.color}">{result.label}</div>',
            unsafe_allow_html=True,
        )

    all_checks = [c for cat in result.categories for c in cat.checks]
    n_fail = sum(1 for c in all_checks if c.status in (CheckStatus.FAIL, CheckStatus.ERROR))
    n_warn = sum(1 for c in all_checks if c.status == CheckStatus.WARN)
    n_pass = sum(1 for c in all_checks if c.status == CheckStatus.PASS)
    links = _link_category(result)

    with col_stats:
        c1, c2, c3, c4 = st.columns(4)
        _metric_card(c1, "Categories", len(result.categories), "neutral")
        _metric_card(c2, "Failed Checks", n_fail, "critical" if n_fail else "success")
        _metric_card(c3, "Warnings", n_warn, "warning")
        _metric_card(c4, "Passed", n_pass, "success")

        if links is not None:
            extra = links.extra
            c5, c6, c7 = st.columns(3)
            _metric_card(c5, "External Links", len(extra.get("external_links", [])), "neutral")
            _metric_card(c6, "External Domains", len(extra.get("external_domains", [])), "neutral")
            _metric_card(c7, "Scripted Redirects", len(extra.get("redirect_links", [])),
                         "warning" if extra.get("redirect_links") else "success")

    st.divider()
    st.plotly_chart(category_scores_bar(result.categories), use_container_width=True)


# ── Dashboard: Categories ─────────────────────────────────────────────────────

def render_categories(result: OverallResult) -> None:
    for cat in result.categories:
        flag = " ⛔" if cat.threat_detected else ""
        with st.expander(f"{cat.icon} **{cat.category}**: {cat.score}/100{flag}", expanded=cat.threat_detected):
            _render_check_table(cat)


# ── Dashboard: External Links ──────────────────────────────────────────────────

def render_links(result: OverallResult) -> None:
    links = _link_category(result)
    if links is None:
        st.info("External link analysis did not run.")
        return

    scored = links.extra.get("scored_links", [])
    c_left, c_right = st.columns(2)
    with c_left:
        st.plotly_chart(link_status_donut(link_status_counts(scored)), use_container_width=True)
    with c_right:
        st.plotly_chart(reference_sources_bar(links.extra.get("reference_counts", {})), use_container_width=True)

    df = scored_links_to_df(scored)
    search = st.text_input("Search links", placeholder="Filter by URL…")
    if search:
        df = df[df["URL"].str.contains(search, case=False, na=False)]
    st.caption(f"Showing {len(df)} link(s)")
    st.dataframe(
        df,
        use_container_width=True,
        height=500,
        column_config={
            "URL":    st.column_config.TextColumn("URL", width="large"),
            "Score":  st.column_config.NumberColumn("Score", format="%d"),
            "Issues": st.column_config.TextColumn("Issues", width="medium"),
        },
    )

    analysis = next((c for c in result.categories if c.category == "Link Analysis"), None)
    matches = analysis.extra.get("threat_matches", []) if analysis else []
    if matches:
        st.subheader("Threat Pattern Matches")
        st.dataframe(pd.DataFrame(matches), use_container_width=True)

    redirects = links.extra.get("redirect_links", [])
    if redirects:
        with st.expander(f"Script-triggered destinations ({len(redirects)})"):
            for url in redirects:
                st.markdown(f"- `{url}`")


# ── Dashboard: Export ─────────────────────────────────────────────────────────

def render_export(result: OverallResult) -> None:
    st.subheader("Export Data")
    stamp = f"{hostname_of(result.url)}_{datetime.now().strftime('%Y%m%d_%H%M')}"

    col1, col2, col3 = st.columns(3)
    with col1:
        df_checks = checks_to_df(result.categories)
        st.download_button(
            "Download All Checks (CSV)",
            data=to_csv_bytes(df_checks),
            file_name=f"checks_{stamp}.csv",
            mime="text/csv",
            use_container_width=True,
        )
        st.caption(f"{len(df_checks)} checks")

    with col2:
        df_cats = categories_to_df(result)
        st.download_button(
            "Download Category Scores (CSV)",
            data=to_csv_bytes(df_cats),
            file_name=f"categories_{stamp}.csv",
            mime="text/csv",
            use_container_width=True,
        )

    with col3:
        links = _link_category(result)
        df_links = scored_links_to_df(links.extra.get("scored_links", []) if links else [])
        st.download_button(
            "Download Scored Links (CSV)",
            data=to_csv_bytes(df_links),
            file_name=f"links_{stamp}.csv",
            mime="text/csv",
            use_container_width=True,
        )
        st.caption(f"{len(df_links)} links")

    st.divider()
    st.subheader("All Checks")
    st.dataframe(checks_to_df(result.categories), use_container_width=True, height=600)


# ── Helpers ────────────────────────────────────────────────────────────────────

def _link_category(result: OverallResult) -> CategoryResult | None:
    return next((c for c in result.categories if c.category == "External Links"), None)


def _metric_card(col, label: str, value, card_class: str = "neutral") -> None:
    with col:
        st.markdown(
            f'<div class="metric-card {card_class}">'
            f'<div class="metric-lbl">{label}</div>'
            f'<div class="metric-val">{value}</div>'
            f'</div>',
            unsafe_allow_html=True,
        )


def _render_check_table(cat: CategoryResult) -> None:
    rows = [{
        "":            CheckStatus.ICONS.get(c.status, "•"),
        "Check":       c.name,
        "Status":      c.status.upper(),
        "Severity":    c.severity.capitalize(),
        "Description": c.description,
    } for c in cat.checks]

    st.dataframe(
        pd.DataFrame(rows),
        use_container_width=True,
        hide_index=True,
        height=min(600, len(rows) * 36 + 60),
        column_config={
            "":            st.column_config.TextColumn("", width="small"),
            "Check":       st.column_config.TextColumn("Check", width="medium"),
            "Description": st.column_config.TextColumn("Description", width="large"),
        },
    )


# ── Landing / empty state ──────────────────────────────────────────────────────

def render_landing() -> None:
    st.markdown("""
    <div style="text-align:center; padding: 4rem 2rem;">
        <div style="font-size:4rem">🛡️</div>
        <h1 style="font-size:2.5rem; font-weight:800; color:#6C63FF; margin:0.5rem 0">SiteSentinel</h1>
        <p style="font-size:1.1rem; color:#888; max-width:600px; margin:0 auto 2rem">
            Scores one page for security, DNS, performance, SEO, accessibility and safety, and finds
            every outbound link it can produce, including those only reachable through scripts and clicks.
        </p>
    </div>
    """, unsafe_allow_html=True)

    col1, col2, col3, col4 = st.columns(4)
    _feature_card(col1, "🔗", "Link Discovery", "Static markup plus a rendered, clicked-through page")
    _feature_card(col2, "🎯", "Risk Scoring", "TLD, shortener, IP-host and reachability heuristics per link")
    _feature_card(col3, "⛔", "Threat Override", "Phishing patterns and typosquats zero the score")
    _feature_card(col4, "🔐", "Security", "HTTPS, headers, DNS, SPF and DMARC")


def _feature_card(col, icon: str, title: str, desc: str) -> None:
    with col:
        st.markdown(
            f'<div class="metric-card neutral" style="text-align:center">'
            f'<div style="font-size:2rem">{icon}</div>'
            f'<div style="font-weight:700;margin:0.5rem 0">{title}</div>'
            f'<div style="font-size:0.85rem;color:#888">{desc}</div>'
            f'</div>',
            unsafe_allow_html=True,
        )


# ── Main ───────────────────────────────────────────────────────────────────────

def main():
    request = render_sidebar()

    if request is not None:
        _clear_results()
        run(*request)
        return

    if not _has_result():
        render_landing()
        return

    result: OverallResult = st.session_state.analysis_result

    st.title(f"Analysis: {hostname_of(result.url)}")
    st.caption(
        f"{result.url} · {result.timestamp.strftime('%Y-%m-%d %H:%M:%S')} · "
        f"Score: **{result.score}/100** ({result.label})"
    )

    tabs = st.tabs(["Overview", "Categories", "External Links", "Export"])

    with tabs[0]:
        render_overview(result)

    with tabs[1]:
        render_categories(result)

    with tabs[2]:
        render_links(result)

    with tabs[3]:
        render_export(result)


if __name__ == "__main__":
    main()
