"""
Generation contracts.

Each operation pairs an input schema, an output schema and a fixed
instruction template. Input values are substituted into the template by
name; the only conditional content is the optional-field blocks of the
resume optimization prompt. Every model reply is validated against the
output schema before anyone sees it.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Callable, Dict, List, Optional, Type

from pydantic import AfterValidator, BaseModel, Field, StrictBool, StringConstraints, field_validator

from .templates import ConditionalBlock, bullet_list, render_optional_blocks
from ..utils import get_ai_logger, strip_wrapper_tags

logger = get_ai_logger()

class Operation(str, Enum):
    """The generation operations offered by the application."""
    ANALYZE_SUITABILITY = "analyze_suitability"
    OPTIMIZE_RESUME = "optimize_resume"
    GENERATE_COVER_LETTER = "generate_cover_letter"
    GENERATE_INTERVIEW_QUESTIONS = "generate_interview_questions"
    GENERATE_FOLLOW_UP_EMAIL = "generate_follow_up_email"
    EXTRACT_JOB_DETAILS = "extract_job_details"

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

def _clean_html_document(value: str) -> str:
    cleaned, changed = strip_wrapper_tags(value)
    if changed:
        logger.warning("Removed <html>/<head>/<body> wrapper from generated document")
    if not cleaned:
        raise ValueError("generated document is empty")
    return cleaned

HtmlDocument = Annotated[str, AfterValidator(_clean_html_document)]

def _dedupe_keywords(values: List[str]) -> List[str]:
    seen = set()
    keywords = []
    for value in values:
        keyword = value.strip()
        if keyword and keyword.lower() not in seen:
            seen.add(keyword.lower())
            keywords.append(keyword)
    return keywords

def mentions(text: str, term: str) -> bool:
    """Case-insensitive whole-term search."""
    pattern = r"(?<!\w)" + re.escape(term.strip()) + r"(?!\w)"
    return re.search(pattern, text or "", re.IGNORECASE) is not None

# Suitability analysis

class SuitabilityInput(BaseModel):
    resume_text: RequiredText
    job_description_text: RequiredText

class SuitabilityOutput(BaseModel):
    compatibility_score: int = Field(description="Integer score from 0 to 100 indicating how compatible the resume is with the job")
    is_right_for_me: StrictBool = Field(description="Boolean, true if the candidate should apply for this job")
    matched_keywords: List[str] = Field(description="Array of keywords from the job description that are present in the resume")
    missing_keywords: List[str] = Field(description="Array of keywords from the job description that are missing from the resume")

    @field_validator("compatibility_score", mode="before")
    @classmethod
    def clamp_score(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("score must be a number")
        if isinstance(value, str):
            try:
                value = float(value.strip())
            except ValueError:
                raise ValueError("score must be a number") from None
        if not isinstance(value, (int, float)):
            raise ValueError("score must be a number")
        if not math.isfinite(value):
            raise ValueError("score must be a finite number")
        return max(0, min(100, round(value)))

    @field_validator("matched_keywords", "missing_keywords")
    @classmethod
    def dedupe(cls, value: List[str]) -> List[str]:
        return _dedupe_keywords(value)

def reconcile_keywords(payload: SuitabilityInput, output: SuitabilityOutput) -> SuitabilityOutput:
    """Move each keyword to the list that matches what the resume actually says."""
    matched, missing = [], []
    for keyword in output.matched_keywords + output.missing_keywords:
        target = matched if mentions(payload.resume_text, keyword) else missing
        target.append(keyword)
    return output.model_copy(update={
        "matched_keywords": _dedupe_keywords(matched),
        "missing_keywords": _dedupe_keywords(missing),
    })

SUITABILITY_TEMPLATE = """You are a career advisor who analyzes a resume against a job description.

1. Provide a compatibility score from 0 to 100.
2. Decide whether the candidate should apply for the job (is_right_for_me).
3. Extract the relevant keywords from the job description: skills, tools, experience and qualifications.
4. List the keywords that are present in the resume (matched_keywords).
5. List the keywords that are missing from the resume (missing_keywords).

Both keyword lists should be comprehensive. Use the wording of the job description for each keyword.

Resume:
{resume_text}

Job Description:
{job_description_text}"""

# Resume optimization

class ProfileInput(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    visa_status: Optional[str] = None

class OptimizeResumeInput(BaseModel):
    resume_text: RequiredText
    job_description_text: RequiredText
    additional_skills: Optional[List[str]] = None
    profile: Optional[ProfileInput] = None

class OptimizeResumeOutput(BaseModel):
    optimized_resume_html: HtmlDocument = Field(description="The optimized resume as an HTML fragment (no <html>, <head> or <body> tags)")

NAME_BLOCKS = [
    ConditionalBlock("- Put the full name in an <h1> tag: {full_name}", requires=("full_name",)),
]

CONTACT_BLOCKS = [
    ConditionalBlock("  - Location: {city}, {state}", requires=("city", "state")),
    ConditionalBlock("  - Phone: {phone}", requires=("phone",)),
    ConditionalBlock("  - Email: {email}", requires=("email",)),
    ConditionalBlock('  - A link with the text "LinkedIn": <a href="{linkedin_url}">LinkedIn</a>', requires=("linkedin_url",)),
    ConditionalBlock('  - A link with the text "GitHub": <a href="{github_url}">GitHub</a>', requires=("github_url",)),
]

SKILLS_BLOCKS = [
    ConditionalBlock(
        "Additional skills to integrate and demonstrate:\n{additional_skills}",
        requires=("additional_skills",),
        formatters={"additional_skills": bullet_list},
    ),
]

VISA_BLOCKS = [
    ConditionalBlock(
        "Before the References section add a \"Visa Status\" section:\n<h2>Visa Status</h2>\n<p>{visa_status}</p>",
        requires=("visa_status",),
    ),
]

def _profile_header(payload: OptimizeResumeInput) -> str:
    if payload.profile is None:
        return ""
    record = payload.profile.model_dump()
    record["full_name"] = " ".join(
        part.strip() for part in (record["first_name"], record["last_name"]) if part and part.strip()
    )

    name_line = render_optional_blocks(record, NAME_BLOCKS)
    contact_lines = render_optional_blocks(record, CONTACT_BLOCKS)
    if not name_line and not contact_lines:
        return ""

    lines = ["Start the resume with a header containing the candidate's contact information."]
    if name_line:
        lines.append(name_line)
    if contact_lines:
        lines.append("- Below the name, add one <p> that joins the following items with ' | ':")
        lines.append(contact_lines)
    return "\n".join(lines)

OPTIMIZE_TEMPLATE = """You are an expert resume writer who tailors resumes to specific job descriptions.

Create a new, optimized resume from the original resume, the job description and the list of additional skills.
Incorporate relevant keywords from the job description and the additional skills. Keep a professional, readable tone.

Do not just list the skills. Show evidence of them: weave the skills and keywords into the bullet points under the
Experience or Projects sections. If a skill is not reflected anywhere in the original resume, write a plausible bullet
point that demonstrates it within the context of a past role.

The output must be a well-structured HTML fragment using semantic tags. Do not include <html>, <head> or <body> tags.
Do not use inline styles.
- Use <h2> for section titles (Experience, Skills, Education).
- Use <h3> for job titles or school names.
- Use <p> for descriptions.
- Use <ul> and <li> for bullet points.

{profile_header}

Resume:
{resume_text}

Job Description:
{job_description_text}

{additional_skills}

{visa_status}
End the resume with a References section:
<h2>References</h2>
<p>Available upon request.</p>"""

# Cover letter

class CoverLetterInput(BaseModel):
    resume_text: RequiredText
    job_description_text: RequiredText

class CoverLetterOutput(BaseModel):
    cover_letter_html: HtmlDocument = Field(description="The cover letter as an HTML fragment (no <html>, <head> or <body> tags)")

COVER_LETTER_TEMPLATE = """You are an expert career writer. Write a professional cover letter for the job below, based on the candidate's resume.

Guidelines:
1. Open with "Dear Hiring Manager," unless the job description names the recipient.
2. State in the first paragraph why the candidate is a strong fit for this specific role.
3. Connect two or three concrete achievements from the resume to the key requirements of the job.
4. Close by expressing interest in an interview.
5. Keep it between 250 and 400 words. Tone: confident, warm and concise.

The output must be an HTML fragment made of <p> paragraphs. Do not include <html>, <head> or <body> tags.
Do not use inline styles. Do not invent employers, degrees or certifications that are not in the resume.

Resume:
{resume_text}

Job Description:
{job_description_text}"""

# Interview questions

class InterviewQuestionsInput(BaseModel):
    resume_text: RequiredText
    job_description_text: RequiredText

class InterviewQuestionsOutput(BaseModel):
    interview_questions_html: HtmlDocument = Field(description="The interview questions and sample answers as an HTML fragment (no <html>, <head> or <body> tags)")

INTERVIEW_TEMPLATE = """You are an expert career coach preparing a candidate for an interview. Based on the resume and job description,
write a list of likely interview questions.

Include a mix of:
1. Non-Technical/Behavioral Questions
2. Technical Questions

For each question give a sample answer using the STAR method (Situation, Task, Action, Result), tailored to the resume.

The output must be a well-structured HTML fragment using semantic tags. Do not include <html>, <head> or <body> tags.
Do not use inline styles.
- Use <h2> for each question group ("Non-Technical Questions", "Technical Questions").
- Use <h3> for each question.
- Use <p> and <strong> to structure the STAR answers (e.g. "<strong>Situation:</strong> ...").

Resume:
{resume_text}

Job Description:
{job_description_text}"""

# Follow-up email

class FollowUpEmailInput(BaseModel):
    resume_text: RequiredText
    cover_letter_text: RequiredText
    job_description_text: RequiredText

class FollowUpEmailOutput(BaseModel):
    follow_up_email_html: HtmlDocument = Field(description="The follow-up email draft as an HTML fragment (no <html>, <head> or <body> tags)")

FOLLOW_UP_TEMPLATE = """You are an assistant specialized in professional follow-up emails.

Given the resume, the cover letter and the job description below, write a follow-up email draft for the job applied for.
The email should be concise, reiterate interest in the position and highlight the skills and experience that match the
job requirements. Keep the tone professional and appreciative and end with a call to action, such as availability for
an interview.

The output must be an HTML fragment of <p> paragraphs. Do not include <html>, <head> or <body> tags.
Do not include a signature; the user adds it.

Resume:
{resume_text}

Cover Letter:
{cover_letter_text}

Job Description:
{job_description_text}"""

# Job detail extraction

class JobDetailsInput(BaseModel):
    job_description_text: RequiredText

class JobDetailsOutput(BaseModel):
    job_title: Optional[str] = Field(default=None, description="The job title exactly as written in the description; omit the field if it cannot be found")
    company_name: Optional[str] = Field(default=None, description="The company name exactly as written in the description; omit the field if it cannot be found")

    @field_validator("job_title", "company_name")
    @classmethod
    def blank_is_absent(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

def drop_unsupported_details(payload: JobDetailsInput, output: JobDetailsOutput) -> JobDetailsOutput:
    """Omit values that do not occur in the description."""
    updates = {}
    for name in ("job_title", "company_name"):
        value = getattr(output, name)
        if value and value.lower() not in payload.job_description_text.lower():
            logger.warning(f"Dropping {name} not found in job description: {value!r}")
            updates[name] = None
    return output.model_copy(update=updates) if updates else output

JOB_DETAILS_TEMPLATE = """You are an expert text analyst. Extract the job title and the company name from the job description.

Only return the job title and the company name. Do not invent details. If a detail cannot be found, omit it.

Job Description:
{job_description_text}"""

# Registry

BLANK_LINES = re.compile(r"\n\s*\n(\s*\n)+")

def _escape_braces(text: str) -> str:
    return text.replace("{", "{{").replace("}", "}}")

@dataclass(frozen=True)
class GenerationContract:
    """Input schema, output schema and instruction template of one operation."""
    operation: Operation
    input_model: Type[BaseModel]
    output_model: Type[BaseModel]
    template: str
    system_prompt: str
    context: Optional[Callable[[BaseModel], Dict[str, str]]] = None
    postprocess: Optional[Callable[[BaseModel, BaseModel], BaseModel]] = None
    max_tokens: int = 4000

    def build_prompt(self, payload: BaseModel) -> str:
        """
        Substitute the input values into the instruction template.

        Optional blocks are rendered first and the blank lines they leave
        behind are collapsed; user text is inserted afterwards, verbatim.
        """
        values = {name: getattr(payload, name) for name in type(payload).model_fields}
        values = {k: v for k, v in values.items() if isinstance(v, str)}
        context = self.context(payload) if self.context else {}

        placeholders = {name: "{" + name + "}" for name in values}
        placeholders.update({name: _escape_braces(text) for name, text in context.items()})
        skeleton = BLANK_LINES.sub("\n\n", self.template.format(**placeholders)).strip()
        return skeleton.format(**{k: v for k, v in values.items() if k not in context})

    def response_format(self) -> Dict[str, str]:
        """Field descriptions handed to the model as the expected JSON shape."""
        return {
            name: field.description or name
            for name, field in self.output_model.model_fields.items()
        }

def _optimize_context(payload: OptimizeResumeInput) -> Dict[str, str]:
    record = {"additional_skills": payload.additional_skills}
    if payload.profile is not None:
        record["visa_status"] = payload.profile.visa_status
    return {
        "profile_header": _profile_header(payload),
        "additional_skills": render_optional_blocks(record, SKILLS_BLOCKS),
        "visa_status": render_optional_blocks(record, VISA_BLOCKS),
    }

CONTRACTS: Dict[Operation, GenerationContract] = {
    Operation.ANALYZE_SUITABILITY: GenerationContract(
        operation=Operation.ANALYZE_SUITABILITY,
        input_model=SuitabilityInput,
        output_model=SuitabilityOutput,
        template=SUITABILITY_TEMPLATE,
        system_prompt="You are a career advisor. You always answer with a JSON object.",
        postprocess=reconcile_keywords,
        max_tokens=2000,
    ),
    Operation.OPTIMIZE_RESUME: GenerationContract(
        operation=Operation.OPTIMIZE_RESUME,
        input_model=OptimizeResumeInput,
        output_model=OptimizeResumeOutput,
        template=OPTIMIZE_TEMPLATE,
        system_prompt="You are an expert resume writer. You always answer with a JSON object.",
        context=_optimize_context,
    ),
    Operation.GENERATE_COVER_LETTER: GenerationContract(
        operation=Operation.GENERATE_COVER_LETTER,
        input_model=CoverLetterInput,
        output_model=CoverLetterOutput,
        template=COVER_LETTER_TEMPLATE,
        system_prompt="You are an expert career writer. You always answer with a JSON object.",
        max_tokens=2000,
    ),
    Operation.GENERATE_INTERVIEW_QUESTIONS: GenerationContract(
        operation=Operation.GENERATE_INTERVIEW_QUESTIONS,
        input_model=InterviewQuestionsInput,
        output_model=InterviewQuestionsOutput,
        template=INTERVIEW_TEMPLATE,
        system_prompt="You are an expert interview coach. You always answer with a JSON object.",
    ),
    Operation.GENERATE_FOLLOW_UP_EMAIL: GenerationContract(
        operation=Operation.GENERATE_FOLLOW_UP_EMAIL,
        input_model=FollowUpEmailInput,
        output_model=FollowUpEmailOutput,
        template=FOLLOW_UP_TEMPLATE,
        system_prompt="You write professional emails. You always answer with a JSON object.",
        max_tokens=1500,
    ),
    Operation.EXTRACT_JOB_DETAILS: GenerationContract(
        operation=Operation.EXTRACT_JOB_DETAILS,
        input_model=JobDetailsInput,
        output_model=JobDetailsOutput,
        template=JOB_DETAILS_TEMPLATE,
        system_prompt="You extract facts from text without inventing anything. You always answer with a JSON object.",
        postprocess=drop_unsupported_details,
        max_tokens=300,
    ),
}

def get_contract(operation: Operation) -> GenerationContract:
    """Look up the contract of an operation."""
    return CONTRACTS[Operation(operation)]
