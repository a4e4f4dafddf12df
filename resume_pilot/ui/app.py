"""
Main Streamlit Application for ResumePilot.

This is the entry point for the web interface: a tabbed layout with the
generator wizard, saved applications, the profile editor and a contact form.

Run with: streamlit run resume_pilot/ui/app.py
"""

import streamlit as st
import sys
from pathlib import Path

# Add project root to path for imports when run from a checkout
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from resume_pilot.ui.components import ContactTab, DashboardTab, GeneratorTab, ProfileTab
from resume_pilot.ui.utils.session import init_session_state, show_pending_notifications, switch_user
from resume_pilot.ui.utils.styling import apply_custom_css

# Configure Streamlit page
st.set_page_config(
    page_title="ResumePilot",
    page_icon="🚀",
    layout="wide",
    initial_sidebar_state="collapsed"
)

def render_sidebar():
    """Render the account selector."""
    with st.sidebar:
        st.markdown("### Account")
        user_id = st.text_input("User ID", value=st.session_state.user_id)
        if user_id != st.session_state.user_id:
            switch_user(user_id)
            st.rerun()

        orchestrator = st.session_state.orchestrator
        providers = orchestrator.invoker.llm_manager.get_available_providers()
        if providers:
            st.caption(f"AI provider: {providers[0]}")
        else:
            st.warning("No AI provider configured. Check your .env file.")

def main():
    """Main application entry point."""
    init_session_state()
    apply_custom_css()
    show_pending_notifications()
    render_sidebar()

    st.markdown("""
    <div class="app-header">
        <h1>🚀 ResumePilot</h1>
        <p>Tailor your resume, cover letter and interview prep to every job</p>
    </div>
    """, unsafe_allow_html=True)

    tab1, tab2, tab3, tab4 = st.tabs([
        "✨ Generator",
        "📋 My Applications",
        "👤 Profile",
        "💬 Contact"
    ])

    with tab1:
        GeneratorTab().render()

    with tab2:
        DashboardTab().render()

    with tab3:
        ProfileTab().render()

    with tab4:
        ContactTab().render()

    st.markdown("""
    <div class="app-footer">
        <hr>
        <p><strong>ResumePilot</strong> | Built for efficient job searching</p>
    </div>
    """, unsafe_allow_html=True)

if __name__ == "__main__":
    main()
