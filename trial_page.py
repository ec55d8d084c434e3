import logging
import os
from functools import partial

import pandas as pd
import streamlit as st

from trial_flow import DEFAULT_CONFIDENCE
from trial_states import AdvanceOutcome, Choice, Resolution

logger = logging.getLogger("radai_study.trial_page")

CHOICE_BY_LABEL = {"Radiologist": Choice.RADIOLOGIST, "RadAI": Choice.AI}

RESOLUTION_LABELS = {
    Resolution.REVEAL_AI: "Reveal RadAI",
    Resolution.KEEP_EDITING: "Keep Editing",
    Resolution.CONTINUE_ANYWAY: "Continue Anyway",
}


def widget_keys(index):
    """Per-trial widget keys, so every case starts from blank inputs."""
    return f"note_{index}", f"choice_{index}", f"conf_{index}"


def sync_inputs(ctl, session_state):
    note_key, choice_key, conf_key = widget_keys(ctl.state.trial_index)
    ctl.set_note(session_state.get(note_key, ""))
    ctl.set_choice(CHOICE_BY_LABEL.get(session_state.get(choice_key), Choice.NONE))
    ctl.set_confidence(session_state.get(conf_key, DEFAULT_CONFIDENCE))


def on_advance(ctl):
    sync_inputs(ctl, st.session_state)
    outcome = ctl.attempt_advance()
    if outcome is AdvanceOutcome.DISABLED:
        logger.debug("Advance ignored: no reliance choice")


def dismiss_warning(ctl):
    # Closing the dialog (X, Esc, backdrop) is the same as "Keep Editing"
    if ctl.warning_open:
        ctl.resolve_warning(Resolution.KEEP_EDITING)


# === PAGES ===

def show_image(case):
    if not case.image_url:
        st.info("No image for this vignette.")
        return

    is_remote = case.image_url.startswith(("http://", "https://"))
    if is_remote or os.path.exists(case.image_url):
        st.image(case.image_url, use_container_width=True, caption=case.image_alt)
    else:
        st.error(f"⚠️ Image '{case.image_url}' not found.")


def _warning_body(ctl):
    if ctl.warning.ai_unrevealed:
        st.write("You haven't viewed the Radiology AI result yet. It may *disagree* with your "
                 "current impression. Would you like to check RadAI before moving on?")
    else:
        st.write("Your note appears to differ from the RadAI finding. Consider reviewing the "
                 "AI output before continuing.")

    resolutions = ctl.available_resolutions
    for col, resolution in zip(st.columns(len(resolutions)), resolutions):
        with col:
            primary = resolution is Resolution.CONTINUE_ANYWAY
            if st.button(RESOLUTION_LABELS[resolution], key=f"resolve_{resolution.value}",
                         use_container_width=True, type="primary" if primary else "secondary"):
                ctl.resolve_warning(resolution)
                st.rerun()


def show_warning(ctl):
    dialog = st.dialog("Before you continue", on_dismiss=partial(dismiss_warning, ctl))
    dialog(_warning_body)(ctl)


def show_trial(ctl):
    case = ctl.current_case
    i = ctl.state.trial_index
    note_key, choice_key, conf_key = widget_keys(i)

    st.subheader(f"Case {i + 1} / {len(ctl.catalog)}")

    col_case, col_read = st.columns([1.2, 1])

    with col_case:
        st.markdown(f"**Patient / Study:** {case.case_text}")
        show_image(case)

        st.markdown("### 🤖 RadAI")
        if not ctl.ephemeral.ai_revealed:
            st.button("Reveal RadAI Finding", key="reveal_ai", on_click=ctl.reveal_ai)
        else:
            st.markdown(f"<div class='radai-finding'>{case.ai_text}</div>", unsafe_allow_html=True)
            st.caption(f"Confidence {case.ai_confidence}% • Confidence ≠ correctness")

    with col_read:
        st.markdown("### 📋 Your Read")
        st.text_area("Clinician Findings", key=note_key,
                     placeholder="Impression, key findings, next steps…", height=140)
        st.radio("Reliance Choice", list(CHOICE_BY_LABEL), key=choice_key, index=None, horizontal=True)
        st.slider("Confidence", min_value=0, max_value=100, value=DEFAULT_CONFIDENCE, key=conf_key)

        sync_inputs(ctl, st.session_state)

        st.markdown("##")
        label = "Finish" if ctl.is_last_trial else "Next Case ➔"
        st.button(label, key="advance", use_container_width=True, type="primary",
                  disabled=not ctl.can_advance, on_click=on_advance, args=(ctl,))

    if ctl.warning_open:
        show_warning(ctl)


def show_done(ctl):
    st.success("🎉 All set. Thank you!")
    st.write("Your session is complete. You can copy the JSON below.")

    records = [r.to_record() for r in ctl.responses]
    df = pd.DataFrame(records)
    st.dataframe(df, use_container_width=True, hide_index=True)
    st.code(ctl.export_json(), language="json")
    st.download_button(
        "Download CSV",
        df.to_csv(index=False).encode("utf-8"),
        file_name=f"radai_{ctl.state.participant_id}.csv",
        mime="text/csv",
    )
