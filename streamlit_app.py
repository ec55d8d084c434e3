import logging

import streamlit as st

from config import StudySettings, load_settings
from event_logger import build_event_logger, connect_gsheet
from first_page import show_consent, show_onboarding
from prepare_data import CatalogError, load_case_catalog
from trial_flow import TrialStateMachine
from trial_page import show_done, show_trial
from trial_states import Step

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger("radai_study")

# === CONFIG & SETUP ===
st.set_page_config(page_title="RadAI Study", page_icon="🩺", layout="wide")

# Custom CSS for a cleaner look
st.markdown("""
    <style>
    .stRadio [role=radiogroup]{padding: 10px; border-radius: 10px; background-color: #f0f2f6;}
    div.stButton > button:first-child { border-radius: 8px;}
    .radai-finding { font-weight: 600; font-size: 1.1rem; }
    </style>
    """, unsafe_allow_html=True)


def read_secrets():
    if not st.secrets.load_if_toml_exists():
        return {}
    return st.secrets.to_dict()


@st.cache_resource
def get_case_catalog(path):
    return load_case_catalog(path)


@st.cache_resource
def get_event_logger(log_endpoint, log_timeout_sec, sheet_url, sheet_worksheet):
    """One logger, worker pool and sheet connection for every session of this process."""
    settings = StudySettings(log_endpoint=log_endpoint, log_timeout_sec=log_timeout_sec,
                             sheet_url=sheet_url, sheet_worksheet=sheet_worksheet)
    open_spreadsheet = None
    account = read_secrets().get("gcp_service_account")
    if sheet_url and account:
        open_spreadsheet = lambda: connect_gsheet(account, sheet_url)  # noqa: E731
    return build_event_logger(settings, open_spreadsheet)


# === MAIN APP LOGIC ===
settings = load_settings(read_secrets())

try:
    catalog = get_case_catalog(settings.cases_path)
except CatalogError as e:
    logger.error("Cannot start study: %s", e)
    st.error(f"⚠️ {e}")
    st.stop()

if "controller" not in st.session_state:
    event_logger = get_event_logger(settings.log_endpoint, settings.log_timeout_sec,
                                    settings.sheet_url, settings.sheet_worksheet)
    st.session_state.controller = TrialStateMachine(catalog, event_logger)
ctl = st.session_state.controller

# --- DECORATED SIDEBAR ---
with st.sidebar:
    st.markdown("## 🩺 RadAI Study")
    st.caption("AI as a Second Reader")
    if ctl.state.participant_id and ctl.step is not Step.CONSENT:
        st.markdown(f"**Participant:** {ctl.state.participant_id}")
    st.divider()

    st.markdown("### 📊 Session Progress")
    st.progress(ctl.progress)
    done_count = len(ctl.responses)
    if ctl.step is Step.DONE:
        st.success("All Cases Finished")
    else:
        st.write(f"**{int(ctl.progress * 100)}% Complete** ({done_count}/{len(catalog)} cases)")

    st.divider()
    st.caption("© RadAI Study • For research use only")

# --- CONTENT AREA ---
if ctl.step is Step.CONSENT:
    show_consent(ctl)
elif ctl.step is Step.ONBOARDING:
    show_onboarding(ctl, settings.calibration_text)
elif ctl.step is Step.TRIAL:
    show_trial(ctl)
else:
    show_done(ctl)
