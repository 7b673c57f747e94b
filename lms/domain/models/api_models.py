from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class AnswerRequest(BaseModel):
    """Request model for saving an answer to the current session."""
    answer: str = Field("", description="The student's response. Empty string means unanswered.")


class JumpRequest(BaseModel):
    """Request model for the question-picker navigation."""
    index: int = Field(..., description="Zero-based question index to jump to.")


class AIGradingResponse(BaseModel):
    """Shape the model must return when grading a free-text answer."""
    score: int = Field(..., ge=0, le=100)
    feedback: str
    strengths: str = ""
    improvements: str = ""


class AIRecommendationResponse(BaseModel):
    """Shape the model must return when asked for study recommendations."""
    learningPath: str
    studySuggestions: List[str] = Field(default_factory=list)
    recommendedResources: List[str] = Field(default_factory=list)
    motivationalMessage: str = ""
    nextSteps: str = ""


class SessionSnapshot(BaseModel):
    """What the API returns about a running quiz session."""
    session_id: str
    state: str
    quiz_id: str
    title: str
    current_index: int
    total_questions: int
    answered: int
    current_question: Optional[Dict[str, Any]] = None
    answers: Dict[str, str] = Field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self):
        return self.model_dump()
