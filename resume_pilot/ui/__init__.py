"""
User interface module for ResumePilot.

This module provides the Streamlit web interface and the generator wizard
state machine behind it.
"""

# UI components are imported by app.py as needed

__all__ = []
