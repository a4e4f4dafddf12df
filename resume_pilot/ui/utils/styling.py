"""
Custom CSS styling for the Streamlit application.

This module provides consistent styling and theming across all UI components.
"""

import html

import streamlit as st
import plotly.graph_objects as go

NOT_GENERATED_TEXT = "Not yet generated"

def apply_custom_css():
    """Apply custom CSS styling to the Streamlit application."""

    st.markdown("""
    <style>
    .stDeployButton {
        display: none !important;
    }

    .main .block-container {
        padding-top: 1rem !important;
        padding-bottom: 2rem !important;
        max-width: 1200px;
    }

    /* Application header */
    .app-header {
        background: linear-gradient(135deg, #4f46e5 0%, #7c3aed 100%);
        color: white;
        padding: 1.5rem 2rem;
        border-radius: 10px;
        margin-bottom: 1.5rem;
        text-align: center;
        box-shadow: 0 4px 6px rgba(0, 0, 0, 0.1);
    }

    .app-header h1 {
        margin: 0;
        font-size: 2.2rem;
        font-weight: 700;
    }

    .app-header p {
        margin: 0.5rem 0 0 0;
        font-size: 1.1rem;
        opacity: 0.9;
    }

    .stTabs [data-baseweb="tab-list"] {
        gap: 8px;
        padding: 0.5rem;
        border-radius: 10px;
        margin-bottom: 1.5rem;
    }

    .stTabs [aria-selected="true"] {
        background: linear-gradient(135deg, #4f46e5 0%, #7c3aed 100%);
        color: white !important;
        border-radius: 8px;
    }

    /* Generated documents */
    .document-preview {
        padding: 1.5rem 2rem;
        border-radius: 10px;
        border: 1px solid rgba(128, 128, 128, 0.3);
        margin-bottom: 1rem;
    }

    .document-placeholder {
        padding: 2rem;
        border-radius: 10px;
        border: 2px dashed rgba(128, 128, 128, 0.4);
        text-align: center;
        opacity: 0.7;
        margin-bottom: 1rem;
    }

    /* Keyword chips */
    .keyword-chip {
        display: inline-block;
        padding: 0.15rem 0.6rem;
        margin: 0.15rem;
        border-radius: 999px;
        font-size: 0.85rem;
    }

    .keyword-matched {
        background: rgba(40, 167, 69, 0.15);
        color: #28a745;
    }

    .keyword-missing {
        background: rgba(220, 53, 69, 0.15);
        color: #dc3545;
    }

    /* Status badges */
    .status-badge {
        display: inline-block;
        padding: 0.2rem 0.7rem;
        border-radius: 999px;
        font-size: 0.8rem;
        font-weight: 600;
    }

    .status-applied { background: rgba(79, 70, 229, 0.15); color: #4f46e5; }
    .status-interviewing { background: rgba(255, 193, 7, 0.2); color: #b8860b; }
    .status-accepted { background: rgba(40, 167, 69, 0.15); color: #28a745; }
    .status-rejected { background: rgba(220, 53, 69, 0.15); color: #dc3545; }

    .app-footer {
        margin-top: 3rem;
        text-align: center;
        font-size: 0.9rem;
        opacity: 0.8;
    }

    @media (max-width: 768px) {
        .app-header h1 {
            font-size: 1.8rem;
        }

        .main .block-container {
            padding-left: 1rem;
            padding-right: 1rem;
        }
    }
    </style>
    """, unsafe_allow_html=True)

def create_status_badge(status):
    """Create a status badge with appropriate styling."""
    return f'<span class="status-badge status-{status.lower()}">{status}</span>'

def create_keyword_chips(keywords, matched=True):
    """Render keywords as colored chips."""
    css_class = "keyword-matched" if matched else "keyword-missing"
    return "".join(f'<span class="keyword-chip {css_class}">{html.escape(keyword)}</span>' for keyword in keywords)

def render_document(document_html, empty_text=NOT_GENERATED_TEXT):
    """Show a generated HTML document, or a placeholder when it is absent."""
    if document_html:
        st.markdown(f'<div class="document-preview">{document_html}</div>', unsafe_allow_html=True)
        return True
    st.markdown(f'<div class="document-placeholder">{empty_text}</div>', unsafe_allow_html=True)
    return False

def score_color(score):
    if score >= 75:
        return "#28a745"
    if score >= 50:
        return "#ffc107"
    return "#dc3545"

def create_score_gauge(score, title="Compatibility"):
    """Build a 0-100 gauge for a compatibility score."""
    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=score,
        number={"suffix": "%"},
        title={"text": title},
        gauge={
            "axis": {"range": [0, 100]},
            "bar": {"color": score_color(score)},
            "steps": [
                {"range": [0, 50], "color": "rgba(220, 53, 69, 0.1)"},
                {"range": [50, 75], "color": "rgba(255, 193, 7, 0.1)"},
                {"range": [75, 100], "color": "rgba(40, 167, 69, 0.1)"},
            ],
        },
    ))
    fig.update_layout(height=220, margin=dict(l=20, r=20, t=40, b=10))
    return fig
