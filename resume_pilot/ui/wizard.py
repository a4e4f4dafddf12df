"""
Generator wizard state machine.

The generator tab is driven by an immutable WizardState and a pure reduce()
function over typed actions. Stages follow the pipeline
IDLE -> ANALYZED -> OPTIMIZED -> LETTER_GENERATED -> FOLLOW_UPS_GENERATED -> SAVED;
the stage is derived from which results are present. In-flight work is
tracked per slot so a running operation cannot be started twice.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple

class Stage(Enum):
    """Progress of the current session through the pipeline."""
    IDLE = "idle"
    ANALYZED = "analyzed"
    OPTIMIZED = "optimized"
    LETTER_GENERATED = "letter_generated"
    FOLLOW_UPS_GENERATED = "follow_ups_generated"
    SAVED = "saved"

class Slot(Enum):
    """Operations that can be in flight."""
    ANALYSIS = "analysis"
    OPTIMIZE = "optimize"
    COVER_LETTER = "cover_letter"
    INTERVIEW_PREP = "interview_prep"
    FOLLOW_UP = "follow_up"
    SAVE = "save"

@dataclass(frozen=True)
class WizardState:
    resume_text: str = ""
    job_description_text: str = ""
    analysis: Optional[Any] = None
    optimized_resume_html: Optional[str] = None
    optimized_analysis: Optional[Any] = None
    cover_letter_html: Optional[str] = None
    interview_questions_html: Optional[str] = None
    follow_up_email_html: Optional[str] = None
    skills_to_add: Tuple[str, ...] = ()
    busy: FrozenSet[Slot] = field(default_factory=frozenset)
    error: Optional[str] = None
    saved_application_id: Optional[str] = None

    @property
    def stage(self) -> Stage:
        if self.saved_application_id:
            return Stage.SAVED
        if self.follow_up_email_html or self.interview_questions_html:
            return Stage.FOLLOW_UPS_GENERATED
        if self.cover_letter_html:
            return Stage.LETTER_GENERATED
        if self.optimized_resume_html:
            return Stage.OPTIMIZED
        if self.analysis is not None:
            return Stage.ANALYZED
        return Stage.IDLE

    def is_busy(self, slot: Optional[Slot] = None) -> bool:
        return bool(self.busy) if slot is None else slot in self.busy

    def documents(self) -> Dict[str, Optional[str]]:
        """The generated documents, keyed by application field name."""
        return {
            "optimized_resume_html": self.optimized_resume_html,
            "cover_letter_html": self.cover_letter_html,
            "interview_questions_html": self.interview_questions_html,
            "follow_up_email_html": self.follow_up_email_html,
        }

# Actions

@dataclass(frozen=True)
class SetText:
    field_name: str  # 'resume_text' or 'job_description_text'
    value: str

@dataclass(frozen=True)
class Started:
    slot: Slot

@dataclass(frozen=True)
class Failed:
    slot: Slot
    message: str

@dataclass(frozen=True)
class AnalysisReady:
    analysis: Any

@dataclass(frozen=True)
class ResumeOptimized:
    html: str

@dataclass(frozen=True)
class OptimizedAnalysisReady:
    analysis: Any

@dataclass(frozen=True)
class CoverLetterReady:
    html: str

@dataclass(frozen=True)
class InterviewPrepReady:
    html: str

@dataclass(frozen=True)
class FollowUpReady:
    html: str

@dataclass(frozen=True)
class AddSkill:
    skill: str

@dataclass(frozen=True)
class RemoveSkill:
    skill: str

@dataclass(frozen=True)
class MoveSkill:
    from_index: int
    to_index: int

@dataclass(frozen=True)
class Saved:
    application_id: str

@dataclass(frozen=True)
class Reset:
    pass

TEXT_FIELDS = ("resume_text", "job_description_text")

def _has_text(value: str) -> bool:
    return bool(value and value.strip())

def can_start(state: WizardState, slot: Slot) -> bool:
    """Whether the control for a slot should be enabled."""
    if slot in state.busy:
        return False
    if slot == Slot.ANALYSIS:
        return not state.busy and _has_text(state.resume_text) and _has_text(state.job_description_text)
    if slot in (Slot.OPTIMIZE, Slot.SAVE):
        return state.analysis is not None
    if slot in (Slot.COVER_LETTER, Slot.INTERVIEW_PREP):
        return bool(state.optimized_resume_html)
    if slot == Slot.FOLLOW_UP:
        return bool(state.cover_letter_html)
    return True

def _results_cleared(state: WizardState, **changes) -> WizardState:
    return WizardState(
        resume_text=changes.get("resume_text", state.resume_text),
        job_description_text=changes.get("job_description_text", state.job_description_text),
        busy=changes.get("busy", state.busy),
    )

def _done(state: WizardState, slot: Slot, **changes) -> WizardState:
    return replace(state, busy=state.busy - {slot}, error=None, **changes)

def reduce(state: WizardState, action: Any) -> WizardState:
    """Return the state that results from applying an action."""
    if isinstance(action, SetText):
        if action.field_name not in TEXT_FIELDS:
            raise ValueError(f"Unknown text field: {action.field_name}")
        if getattr(state, action.field_name) == action.value:
            return state
        return _results_cleared(state, **{action.field_name: action.value})

    if isinstance(action, Started):
        if not can_start(state, action.slot):
            return state
        return replace(state, busy=state.busy | {action.slot}, error=None)

    if isinstance(action, Failed):
        return replace(state, busy=state.busy - {action.slot}, error=action.message)

    if isinstance(action, AnalysisReady):
        fresh = _results_cleared(state, busy=state.busy - {Slot.ANALYSIS})
        seeded = tuple(getattr(action.analysis, "missing_keywords", None) or ())
        return replace(fresh, analysis=action.analysis, skills_to_add=seeded)

    if isinstance(action, ResumeOptimized):
        return _done(state, Slot.OPTIMIZE, optimized_resume_html=action.html, optimized_analysis=None)

    if isinstance(action, OptimizedAnalysisReady):
        return replace(state, optimized_analysis=action.analysis)

    if isinstance(action, CoverLetterReady):
        return _done(state, Slot.COVER_LETTER, cover_letter_html=action.html)

    if isinstance(action, InterviewPrepReady):
        return _done(state, Slot.INTERVIEW_PREP, interview_questions_html=action.html)

    if isinstance(action, FollowUpReady):
        return _done(state, Slot.FOLLOW_UP, follow_up_email_html=action.html)

    if isinstance(action, AddSkill):
        skill = action.skill.strip()
        if not skill or skill.lower() in (s.lower() for s in state.skills_to_add):
            return state
        return replace(state, skills_to_add=state.skills_to_add + (skill,))

    if isinstance(action, RemoveSkill):
        return replace(state, skills_to_add=tuple(s for s in state.skills_to_add if s != action.skill))

    if isinstance(action, MoveSkill):
        skills = list(state.skills_to_add)
        if not (0 <= action.from_index < len(skills) and 0 <= action.to_index < len(skills)):
            return state
        skills.insert(action.to_index, skills.pop(action.from_index))
        return replace(state, skills_to_add=tuple(skills))

    if isinstance(action, Saved):
        return _done(state, Slot.SAVE, saved_application_id=action.application_id)

    if isinstance(action, Reset):
        return WizardState(resume_text=state.resume_text, job_description_text=state.job_description_text)

    raise TypeError(f"Unknown wizard action: {action!r}")
