from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import List, Optional
from datetime import datetime, timezone
from enum import Enum


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    SHORT_ANSWER = "short_answer"


class UserRole(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"


class GradedBy(str, Enum):
    LOCAL = "local"
    AI = "ai"


def _utc_now():
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


def option_letter(index: int) -> str:
    """0 -> 'A', 1 -> 'B', ..."""
    return chr(ord("A") + index)


class Question(BaseModel):
    """
    A single quiz question. Which answer fields are required depends on `type`:

    - multiple_choice: `options` and the `correct_option` letter
    - true_false: `correct_answer` ("true" / "false")
    - short_answer: `reference_answer`, optionally `keywords`
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    type: QuestionType
    prompt: str
    options: List[str] = Field(default_factory=list)
    correct_option: Optional[str] = None
    correct_answer: Optional[str] = None
    reference_answer: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_answer_fields(self):
        if self.type == QuestionType.MULTIPLE_CHOICE:
            if not self.options:
                raise ValueError("multiple_choice question needs options")
            if self.correct_option not in self.option_letters():
                raise ValueError(
                    f"correct_option must be one of {self.option_letters()}, got {self.correct_option!r}"
                )
        elif self.type == QuestionType.TRUE_FALSE:
            if str(self.correct_answer).strip().lower() not in ("true", "false"):
                raise ValueError("true_false question needs correct_answer 'true' or 'false'")
        elif self.type == QuestionType.SHORT_ANSWER:
            if not self.reference_answer or not self.reference_answer.strip():
                raise ValueError("short_answer question needs a reference_answer")
        return self

    def option_letters(self) -> List[str]:
        return [option_letter(i) for i in range(len(self.options))]

    def option_text(self, letter: str) -> Optional[str]:
        letters = self.option_letters()
        if letter in letters:
            return self.options[letters.index(letter)]
        return None

    @property
    def is_objective(self) -> bool:
        return self.type in (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE)


class Quiz(BaseModel):
    """A quiz created by a teacher. Question order is the navigation order."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., alias="_id")
    title: str
    description: str = ""
    course_id: str
    subject: str = "general"
    questions: List[Question] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utc_now)

    def to_dict(self):
        """Convert model to dictionary for MongoDB."""
        return self.model_dump(by_alias=True)


class Grading(BaseModel):
    """Outcome of grading one answer."""
    score: int = Field(..., ge=0, le=100)
    feedback: str
    strengths: str = ""
    improvements: str = ""
    graded_by: GradedBy = GradedBy.LOCAL


class GradedQuestion(BaseModel):
    """A question together with the student's answer and its grading."""
    model_config = ConfigDict(frozen=True)

    id: str
    type: QuestionType
    prompt: str
    options: List[str] = Field(default_factory=list)
    correct_option: Optional[str] = None
    correct_answer: Optional[str] = None
    reference_answer: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    student_answer: str
    score: int = Field(..., ge=0, le=100)
    feedback: str
    strengths: str = ""
    improvements: str = ""
    graded_by: GradedBy = GradedBy.LOCAL

    @classmethod
    def build(cls, question: Question, student_answer: str, grading: Grading) -> "GradedQuestion":
        return cls(
            **question.model_dump(),
            student_answer=student_answer,
            **grading.model_dump(),
        )


class Recommendation(BaseModel):
    type: str
    title: str
    description: str = ""
    priority: str = "medium"
    url: Optional[str] = None
    ai_generated: bool = False


class QuizResult(BaseModel):
    """The graded outcome of one quiz attempt. Written once, never updated."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., alias="_id")
    student_id: str
    quiz_id: str
    course_id: str
    score: int = Field(..., ge=0, le=100)
    total_questions: int
    questions: List[GradedQuestion]
    submitted_at: datetime
    timestamp: int          # ms since epoch, for sorting
    date: str               # human readable
    time: str               # human readable
    recommendations: List[str] = Field(default_factory=list)

    def to_dict(self):
        """Convert model to dictionary for MongoDB."""
        return self.model_dump(by_alias=True)


class Resource(BaseModel):
    """A learning resource (video, article, exercise set) for a subject."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    title: str
    subject: str
    difficulty: str  # easy / medium / hard
    type: str = "article"
    url: Optional[str] = None


class Lesson(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    course_id: str
    title: str
    difficulty: str = "medium"
    order: int = 0


class CourseProgress(BaseModel):
    """A student's progress in one course."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")  # "{user_id}:{course_id}"
    user_id: str
    course_id: str
    quiz_scores: List[int] = Field(default_factory=list)
    completed_lessons: List[str] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=_utc_now)

    @staticmethod
    def make_id(user_id: str, course_id: str) -> str:
        return f"{user_id}:{course_id}"

    def to_dict(self):
        """Convert model to dictionary for MongoDB."""
        return self.model_dump(by_alias=True)


class User(BaseModel):
    """A user as stored by the identity layer. Only the fields we read."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id")
    email: str = ""
    name: str = ""
    role: UserRole = UserRole.STUDENT
    is_active: bool = True
