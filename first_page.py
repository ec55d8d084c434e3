import streamlit as st


def _sync_participant_id(ctl):
    ctl.set_participant_id(st.session_state.get("participant_id", ""))


def _begin(ctl):
    _sync_participant_id(ctl)
    ctl.start_onboarding()


def show_consent(ctl):
    st.title("🩺 RadAI Study: AI as a Second Reader")
    st.markdown("---")

    # Hero Section
    col_text, col_info = st.columns([2, 1])

    with col_text:
        st.subheader("📋 Welcome")
        st.write("""
        You'll review brief radiology case vignettes. Some AI outputs are intentionally
        varied to study decision-making. This is not medical advice.
        """)

        st.text_input(
            "Participant ID",
            placeholder="e.g., EM1234",
            key="participant_id",
            on_change=_sync_participant_id,
            args=(ctl,),
        )
        _sync_participant_id(ctl)

    with col_info:
        st.info("""
        **About the Study**
        * Mixed-initiative decision support (Radiologist + AI)
        * Trust calibration & mental model alignment
        * Measures: reliance, confidence, free-text rationale
        """)

    st.markdown("<br>", unsafe_allow_html=True)

    st.button(
        "🚀 Begin",
        key="begin",
        use_container_width=True,
        type="primary",
        disabled=not ctl.can_begin,
        on_click=_begin,
        args=(ctl,),
    )


def show_onboarding(ctl, calibration_text):
    st.title("🎯 Calibration Onboarding")
    st.markdown("---")
    st.code(calibration_text, language=None)

    st.markdown("---")

    # Layout Explanation
    st.subheader("⌨️ Evaluation Interface")
    c1, c2, c3 = st.columns(3)

    with c1:
        st.markdown("### 1. Read")
        st.write("Review the patient vignette and the study image.")

    with c2:
        st.markdown("### 2. Consult")
        st.write("Reveal the **RadAI** finding when you want it. Confidence ≠ correctness.")

    with c3:
        st.markdown("### 3. Record")
        st.write("Write your findings, choose whom you rely on, set your confidence and advance.")

    st.markdown("<br><br>", unsafe_allow_html=True)

    st.button("Continue", key="start_trials", use_container_width=True, type="primary", on_click=ctl.start_trials)
