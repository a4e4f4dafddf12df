"""
UI Components module for ResumePilot.

This module contains the Streamlit tabs of the user interface.
"""

from .generator import GeneratorTab
from .dashboard import DashboardTab
from .application_detail import ApplicationDetailView
from .profile import ProfileTab
from .contact import ContactTab

__all__ = [
    'GeneratorTab',
    'DashboardTab',
    'ApplicationDetailView',
    'ProfileTab',
    'ContactTab'
]
