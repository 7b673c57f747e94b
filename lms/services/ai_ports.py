"""
Narrow interfaces to the hosted model, plus the LLM-backed implementations.

The quiz session only talks to `AIGradingPort` / `AIRecommendationPort`, so
swapping the vendor (or stubbing it in tests) never touches grading logic.
"""
import json
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from pydantic import ValidationError

from lms.domain.errors import ParsingError
from lms.domain.models.api_models import AIGradingResponse, AIRecommendationResponse
from lms.domain.models.db_models import Grading, GradedBy, Question, Recommendation
from lms.services.ai_client import AIClient, ai_client as default_ai_client
from lms_utils.logger_utils import logger


class AIGradingPort(ABC):
    """Grades a free-text answer. Raises on any failure."""

    @abstractmethod
    def grade_free_text(self, question: Question, reference_answer: str, student_answer: str) -> Grading:
        pass


class AIRecommendationPort(ABC):
    """Produces study recommendations for a quiz score. Raises on any failure."""

    @abstractmethod
    def recommend(
        self,
        score: int,
        subject: str,
        answers: Dict[str, str],
        context: str,
    ) -> List[Recommendation]:
        pass


class LLMGradingService(AIGradingPort):
    def __init__(self, client: Optional[AIClient] = None):
        self.client = client or default_ai_client

    @staticmethod
    def build_prompt(question: Question, reference_answer: str, student_answer: str) -> str:
        keywords = ""
        if question.keywords:
            keywords = f'Key points the answer should mention: {", ".join(question.keywords)}\n'
        return f"""
You are an AI tutor grading a student's answer. Please provide a fair and constructive assessment.

Question: "{question.prompt}"
Correct Answer: "{reference_answer}"
{keywords}Student Answer: "{student_answer}"

Please provide:
1. A score from 0-100
2. Constructive feedback
3. What the student did well
4. What they could improve

Respond in JSON format:
{{
  "score": number,
  "feedback": "string",
  "strengths": "string",
  "improvements": "string"
}}
"""

    def grade_free_text(self, question: Question, reference_answer: str, student_answer: str) -> Grading:
        prompt = self.build_prompt(question, reference_answer, student_answer)
        payload = self.client.generate_json(prompt=prompt, task_type="grading", temperature=0.3, max_tokens=300)

        try:
            parsed = AIGradingResponse.model_validate(payload)
        except ValidationError as e:
            logger.warning(
                "LLMGradingService.bad_shape",
                extra={"question_id": question.id, "error": str(e)},
            )
            raise ParsingError(f"AI grading response has the wrong shape: {e}") from e

        return Grading(
            score=parsed.score,
            feedback=parsed.feedback,
            strengths=parsed.strengths,
            improvements=parsed.improvements,
            graded_by=GradedBy.AI,
        )


class LLMRecommendationService(AIRecommendationPort):
    def __init__(self, client: Optional[AIClient] = None):
        self.client = client or default_ai_client

    @staticmethod
    def build_prompt(score: int, subject: str, answers: Dict[str, str], context: str) -> str:
        return f"""
You are an AI learning assistant creating personalized recommendations for a K-12 student.

Student Performance:
- Quiz Score: {score}%
- Subject: {subject}
- Student Answers: {json.dumps(answers, ensure_ascii=False)}
- Course Content: {context}

Based on this performance, provide:
1. Learning path recommendation (remedial, standard, or advanced)
2. Specific study suggestions
3. Recommended resources
4. Motivational message

Respond in JSON format:
{{
  "learningPath": "remedial|standard|advanced",
  "studySuggestions": ["suggestion1", "suggestion2", "suggestion3"],
  "recommendedResources": ["resource1", "resource2"],
  "motivationalMessage": "string",
  "nextSteps": "string"
}}
"""

    @staticmethod
    def to_recommendations(parsed: AIRecommendationResponse, subject: str) -> List[Recommendation]:
        path = parsed.learningPath.strip() or "standard"
        recommendations = [
            Recommendation(
                type=path,
                title=f"Learning Path: {path[:1].upper()}{path[1:]}",
                description=parsed.motivationalMessage,
                priority="high",
                ai_generated=True,
            )
        ]
        for index, suggestion in enumerate(parsed.studySuggestions, start=1):
            recommendations.append(Recommendation(
                type="study",
                title=f"Study Tip {index}",
                description=suggestion,
                priority="medium",
                ai_generated=True,
            ))
        for resource in parsed.recommendedResources:
            recommendations.append(Recommendation(
                type="resource",
                title=resource,
                description=f"AI-recommended resource for {subject}",
                priority="medium",
                ai_generated=True,
            ))
        if parsed.nextSteps:
            recommendations.append(Recommendation(
                type="next",
                title="Next Steps",
                description=parsed.nextSteps,
                priority="high",
                ai_generated=True,
            ))
        return recommendations

    def recommend(self, score: int, subject: str, answers: Dict[str, str], context: str) -> List[Recommendation]:
        prompt = self.build_prompt(score, subject, answers, context)
        payload = self.client.generate_json(
            prompt=prompt, context=context, task_type="recommendation", temperature=0.7, max_tokens=400
        )

        try:
            parsed = AIRecommendationResponse.model_validate(payload)
        except ValidationError as e:
            raise ParsingError(f"AI recommendation response has the wrong shape: {e}") from e

        return self.to_recommendations(parsed, subject)
