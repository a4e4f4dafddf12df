"""
Contact Tab Component.
"""

import streamlit as st

from resume_pilot.email_composer import handle_inquiry
from resume_pilot.ui.utils.session import get_channel

class ContactTab:
    """Contact form that emails the operators."""

    def render(self):
        """Render the contact form."""
        st.markdown("### 💬 Contact Us")
        st.caption("Questions or feedback? Send us a message and we'll get back to you.")

        with st.form("contact_form", clear_on_submit=False):
            name = st.text_input("Name")
            email = st.text_input("Email")
            message = st.text_area("Message", height=180)
            submitted = st.form_submit_button("📨 Send Message", type="primary")

        if not submitted:
            return

        result = handle_inquiry(
            {"name": name, "email": email, "message": message},
            mailer=st.session_state.mailer,
            channel=get_channel(),
        )
        if result.success:
            st.success(result.message)
            return

        st.error(result.message)
        for messages in result.errors.values():
            for text in messages:
                st.caption(f"• {text}")
