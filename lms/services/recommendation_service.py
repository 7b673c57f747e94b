from typing import Dict, List, Optional

from lms.domain.models.db_models import Recommendation
from lms.domain.repositories import IResourceRepository
from lms.services.ai_ports import AIRecommendationPort
from lms_utils.logger_utils import logger

MAX_RESOURCE_RECOMMENDATIONS = 3

_TIER_DIFFICULTY = {
    "remedial": "easy",
    "practice": "medium",
    "advanced": "hard",
}


def performance_tier(score: int) -> str:
    if score < 50:
        return "remedial"
    if score < 80:
        return "practice"
    return "advanced"


class RecommendationService:
    """
    Study recommendations after a quiz. Uses the AI recommender when one is
    configured and always falls back to rules based on the score tier.
    """

    def __init__(
        self,
        ai_recommender: Optional[AIRecommendationPort] = None,
        resource_repository: Optional[IResourceRepository] = None,
    ):
        self.ai_recommender = ai_recommender
        self.resource_repository = resource_repository

    def recommend(self, score: int, subject: str, answers: Dict[str, str], context: str = "") -> List[Recommendation]:
        if self.ai_recommender is not None:
            try:
                recommendations = self.ai_recommender.recommend(score, subject, answers, context)
                if recommendations:
                    return recommendations
                logger.warning("AI recommender returned nothing, using rule-based recommendations")
            except Exception as e:
                logger.warning(f"AI recommendations unavailable, using rule-based fallback: {e}")
        return self.fallback_recommendations(score, subject)

    def fallback_recommendations(self, score: int, subject: str) -> List[Recommendation]:
        tier = performance_tier(score)

        if tier == "remedial":
            recommendations = [Recommendation(
                type="remedial",
                title="Review Basic Concepts",
                description="Focus on fundamental concepts before moving forward",
                priority="high",
            )]
        elif tier == "practice":
            recommendations = [Recommendation(
                type="practice",
                title="Practice More Problems",
                description="Try additional practice problems to strengthen your understanding",
                priority="medium",
            )]
        else:
            recommendations = [Recommendation(
                type="advanced",
                title="Challenge Yourself",
                description="You're ready for more advanced topics!",
                priority="low",
            )]

        recommendations.extend(self._resource_recommendations(tier, subject))
        return recommendations

    def _resource_recommendations(self, tier: str, subject: str) -> List[Recommendation]:
        if self.resource_repository is None:
            return []

        difficulty = _TIER_DIFFICULTY[tier]
        try:
            resources = self.resource_repository.find(subject=subject, difficulty=difficulty)
        except Exception as e:
            logger.warning(f"Could not load resources for {subject}/{difficulty}: {e}")
            return []

        return [
            Recommendation(
                type="resource",
                title=resource.title,
                description=f"Recommended {resource.type} for {resource.difficulty} level",
                url=resource.url,
                priority="high" if tier == "remedial" else "medium",
            )
            for resource in resources[:MAX_RESOURCE_RECOMMENDATIONS]
        ]
