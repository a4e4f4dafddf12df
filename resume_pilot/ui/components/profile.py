"""
Profile Tab Component.

Contact details used in the header of optimized resumes.
"""

import streamlit as st

from resume_pilot.ui.utils.session import get_orchestrator

PROFILE_FIELDS = [
    ("first_name", "First name"),
    ("last_name", "Last name"),
    ("email", "Email"),
    ("phone", "Phone"),
    ("address", "Address"),
    ("city", "City"),
    ("state", "State"),
    ("zip_code", "ZIP code"),
    ("linkedin_url", "LinkedIn URL"),
    ("github_url", "GitHub URL"),
    ("visa_status", "Visa status"),
]

class ProfileTab:
    """Profile editor."""

    def __init__(self):
        self.orchestrator = get_orchestrator()
        self.user_id = st.session_state.get('user_id')

    def render(self):
        """Render the profile form."""
        st.markdown("### 👤 Profile")
        st.caption("These details appear in the header of your optimized resumes.")

        envelope = self.orchestrator.load_profile(self.user_id)
        if not envelope.ok:
            st.error(envelope.error)
            return
        profile = envelope.data

        with st.form("profile_form"):
            values = {}
            cols = st.columns(2)
            for i, (name, label) in enumerate(PROFILE_FIELDS):
                with cols[i % 2]:
                    values[name] = st.text_input(label, value=getattr(profile, name) or "")

            if st.form_submit_button("💾 Save Profile", type="primary"):
                cleaned = {name: (value.strip() or None) for name, value in values.items()}
                # Name and email are always strings on the stored profile
                for name in ("first_name", "last_name", "email"):
                    cleaned[name] = cleaned[name] or ""
                result = self.orchestrator.save_profile(self.user_id, cleaned)
                if result.ok:
                    st.success("Profile saved.")
                else:
                    st.error(result.error)
