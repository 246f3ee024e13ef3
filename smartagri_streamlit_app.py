# smartagri_streamlit_app.py
"""
SmartAgri - IoT smart agriculture dashboard (Streamlit)
Features:
- Live temperature, humidity, soil moisture and N/P/K from Firebase Realtime Database
- Parameter detail pages
- Result & Suggestions: crop profiles, editable manual ranges, color-coded readings
- Gemini soil-health suggestions and crop predictions
- Land Soil Analysis: per-minute sample capture with CSV download
"""

# -------------- imports & page config (must be first Streamlit command) --------------
import logging

import streamlit as st
st.set_page_config(page_title="SmartAgri — IoT Smart Agriculture", layout="wide")

import pandas as pd
from streamlit import runtime
from streamlit.runtime.scriptrunner import get_script_run_ctx
from streamlit_autorefresh import st_autorefresh

from smartagri.advisory import crop_prediction_prompt, safe_generate, soil_health_prompt
from smartagri.config import load_settings
from smartagri.crops import crop_names
from smartagri.datastore import open_live_feed
from smartagri.measurements import Measurement, describe, format_value
from smartagri.ranges import RangeStatus, classify
from smartagri.state import DETAIL, HOME, RESULTS, SOIL_ANALYSIS, AppState

# ---------------- load env and defaults ----------------
settings = load_settings()
logger = logging.getLogger("smartagri.app")

STATUS_COLORS = {
    # dark mode
    True: {RangeStatus.BELOW: "#b91c1c", RangeStatus.WITHIN: "#15803d", RangeStatus.ABOVE: "#a16207"},
    # light mode
    False: {RangeStatus.BELOW: "#ef4444", RangeStatus.WITHIN: "#22c55e", RangeStatus.ABOVE: "#eab308"},
}
STATUS_LEGEND = [
    (RangeStatus.BELOW, "Less than required"),
    (RangeStatus.WITHIN, "Perfect amount"),
    (RangeStatus.ABOVE, "Higher than required"),
]


# ---------------- realtime feed (one per server process) ----------------
@st.cache_resource
def load_live_feed():
    return open_live_feed(settings)

live, subscription, feed_err = load_live_feed()

# ---------------- session state ----------------
if "app_state" not in st.session_state:
    st.session_state.app_state = AppState()
state = st.session_state.app_state

# live values, sampling and background suggestions all need periodic reruns
st_autorefresh(interval=settings.refresh_interval_ms, key="live_refresh")
readings = live.readings


# ---------------- helpers ----------------
def status_css(status: RangeStatus, dark: bool) -> str:
    color = STATUS_COLORS[dark].get(status)
    return f"background-color: {color}; color: white" if color else ""

def readings_table(state: AppState, readings):
    """Readings vs. active favorable ranges, with the value cell colored by status."""
    ranges = state.active_ranges()
    rows, statuses = [], []
    for m in Measurement:
        spec = ranges.get(m, "")
        rows.append({"Parameter": m.label, "Current value": f"{format_value(m, readings.value(m))} {m.unit}", "Favorable": spec})
        statuses.append(classify(m, readings.value(m), spec))
    df = pd.DataFrame(rows)
    css = [status_css(s, state.dark_mode) for s in statuses]
    return df.style.apply(lambda _col: css, subset=["Current value"])

def back_button(state: AppState):
    st.button("← Back to Home", on_click=state.navigate, args=(HOME,), key=f"back_{state.page}")

def request_soil_health(state: AppState):
    prompt = soil_health_prompt(live.readings, state.active_ranges(), state.selected_crop)
    state.soil_health.submit(lambda: safe_generate(prompt, settings))

def request_crop_prediction(state: AppState):
    prompt = crop_prediction_prompt(live.readings)
    state.crop_prediction.submit(lambda: safe_generate(prompt, settings))

def on_crop_change(state: AppState):
    state.select_crop(st.session_state.crop_choice)

def on_manual_range_change(state: AppState, m: Measurement):
    state.set_manual_range(m, st.session_state[f"manual_{m.name}"])

def session_alive_check():
    """Liveness callable for this browser session; capture ends once the session is closed."""
    ctx = get_script_run_ctx()
    if ctx is None:
        return None
    session_id = ctx.session_id
    return lambda: runtime.exists() and runtime.get_instance().is_active_session(session_id)

def start_capture(state: AppState):
    state.start_capture(lambda: live.readings, alive=session_alive_check())


# ---------------- pages ----------------
def home_page(state: AppState, readings):
    st.header("IoT Based Smart Agriculture System")
    cols = st.columns(3)
    for i, m in enumerate(Measurement):
        with cols[i % 3]:
            st.metric(m.label, f"{format_value(m, readings.value(m))} {m.unit}")
            st.button(f"About {m.label}", key=f"detail_{m.name}", on_click=state.navigate, args=(DETAIL, m))
    st.markdown("---")
    c1, c2 = st.columns(2)
    with c1:
        st.button("🔍 Result and Suggestions", on_click=state.navigate, args=(RESULTS,), use_container_width=True)
    with c2:
        st.button("🔬 Land Soil Analysis", on_click=state.navigate, args=(SOIL_ANALYSIS,), use_container_width=True)

def detail_page(state: AppState):
    back_button(state)
    if state.parameter is None:
        st.info("Pick a parameter on the Home page.")
        return
    st.header(state.parameter.label)
    st.write(describe(state.parameter))

def soil_analysis_page(state: AppState):
    back_button(state)
    st.header("Land Soil Analysis")
    st.subheader("Collected Soil Samples")
    c1, c2, c3 = st.columns(3)
    with c1:
        st.button("▶ Start Storing Data", on_click=start_capture, args=(state,), disabled=state.capturing)
    with c2:
        st.button("⏹ Stop Storing Data", on_click=state.stop_capture, disabled=not state.capturing)
    with c3:
        st.button("🗑 Clear All Samples", on_click=state.clear_samples)
    if len(state.sample_log):
        df = state.sample_log.to_frame()
        st.dataframe(df, use_container_width=True, hide_index=True)
        st.download_button("⬇ Download CSV", data=state.sample_log.to_csv(), file_name="soil_samples.csv", mime="text/csv")
    elif not state.capturing:
        st.info("No samples collected yet.")
    if state.capturing:
        st.info(f"Collecting samples... one every {state.sample_interval:.0f} s")

def results_page(state: AppState, readings):
    back_button(state)
    st.header("Result & Suggestions")
    names = crop_names()
    st.selectbox(
        "Select your crop or manual input",
        names,
        index=names.index(state.selected_crop),
        key="crop_choice",
        on_change=on_crop_change,
        args=(state,),
    )
    if state.profile.editable:
        st.caption("Edit the favorable ranges, e.g. 20~30°C or 70-100%")
        cols = st.columns(3)
        for i, m in enumerate(Measurement):
            with cols[i % 3]:
                st.text_input(
                    m.label,
                    value=state.manual.range_for(m),
                    key=f"manual_{m.name}",
                    on_change=on_manual_range_change,
                    args=(state, m),
                )
    st.dataframe(readings_table(state, readings), use_container_width=True, hide_index=True)

    st.markdown("**Color code meaning:**")
    for col, (status, text) in zip(st.columns(3), STATUS_LEGEND):
        col.markdown(
            f"<span style='{status_css(status, state.dark_mode)}; padding: 2px 10px; border-radius: 4px'>&nbsp;</span> {text}",
            unsafe_allow_html=True,
        )

    c1, c2 = st.columns(2)
    with c1:
        st.button(
            "Generating..." if state.soil_health.loading else "🧪 Get Soil Health Suggestions",
            on_click=request_soil_health,
            args=(state,),
            disabled=state.soil_health.loading,
            use_container_width=True,
        )
    with c2:
        st.button(
            "Generating..." if state.crop_prediction.loading else "🌾 Get Crop Predictions",
            on_click=request_crop_prediction,
            args=(state,),
            disabled=state.crop_prediction.loading,
            use_container_width=True,
        )

    if state.soil_health.result or state.crop_prediction.result:
        st.button("Clear All Suggestions", on_click=state.clear_suggestions)
    if state.soil_health.result:
        st.subheader("Soil Health Suggestions")
        st.info(state.soil_health.result)
    if state.crop_prediction.result:
        st.subheader("Crop Predictions")
        st.info(state.crop_prediction.result)


# ---------------- Sidebar navigation ----------------
st.sidebar.title("SmartAgri")
st.sidebar.caption("Live field sensors & AI suggestions")
st.sidebar.button("🏠 Home", on_click=state.navigate, args=(HOME,), use_container_width=True)
st.sidebar.button("🔍 Result and Suggestions", on_click=state.navigate, args=(RESULTS,), use_container_width=True)
st.sidebar.button("🔬 Land Soil Analysis", on_click=state.navigate, args=(SOIL_ANALYSIS,), use_container_width=True)
st.sidebar.toggle("🌙 Dark mode", value=state.dark_mode, key="dark_mode_toggle", on_change=state.toggle_dark_mode)

# show basic status
st.sidebar.markdown("### Status")
st.sidebar.write({
    "Live data": subscription is not None,
    "Gemini configured": settings.advisory_enabled,
    "Capturing samples": state.capturing,
})
if readings.received_at:
    st.sidebar.caption(f"Last reading: {readings.received_at:%H:%M:%S}")
if feed_err:
    st.sidebar.error(feed_err)
for note in settings.diagnostics():
    st.sidebar.warning(note)

st.title("🌱 SmartAgri")

if state.page == HOME:
    home_page(state, readings)
elif state.page == DETAIL:
    detail_page(state)
elif state.page == RESULTS:
    results_page(state, readings)
elif state.page == SOIL_ANALYSIS:
    soil_analysis_page(state)

# Footer
st.markdown("---")
st.caption("SmartAgri — set FIREBASE_* and GEMINI_API_KEY in .env to enable live data & AI suggestions.")
