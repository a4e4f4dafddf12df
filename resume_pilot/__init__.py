"""
ResumePilot - AI Job Application Tailoring Tool

Tailors application materials to a specific job description:
- Resume/job suitability analysis with keyword matching
- Resume optimization with additional skills and profile header
- Cover letter, interview prep and follow-up email generation
- Per-user application tracking and .docx export

Generated documents are drafts; the user reviews and edits them
before sending anything to an employer.
"""

__version__ = "1.0.0"
