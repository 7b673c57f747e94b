from unittest.mock import MagicMock

import pytest

from lms.domain.errors import AIClientError
from lms.domain.models.db_models import Recommendation, Resource
from lms.domain.repositories import IResourceRepository
from lms.services.ai_ports import AIRecommendationPort
from lms.services.recommendation_service import RecommendationService, performance_tier


@pytest.mark.parametrize("score,tier", [
    (0, "remedial"), (49, "remedial"), (50, "practice"), (79, "practice"), (80, "advanced"), (100, "advanced"),
])
def test_performance_tier(score, tier):
    assert performance_tier(score) == tier


class TestRecommendationService:
    def test_uses_ai_when_available(self):
        ai = MagicMock(spec=AIRecommendationPort)
        ai.recommend.return_value = [Recommendation(type="standard", title="Learning Path: Standard", ai_generated=True)]
        service = RecommendationService(ai_recommender=ai)

        recs = service.recommend(65, "math", {"q1": "A"}, "Fractions")

        assert [r.title for r in recs] == ["Learning Path: Standard"]
        ai.recommend.assert_called_once_with(65, "math", {"q1": "A"}, "Fractions")

    def test_ai_failure_falls_back_to_tier(self):
        ai = MagicMock(spec=AIRecommendationPort)
        ai.recommend.side_effect = AIClientError("timeout")
        recs = RecommendationService(ai_recommender=ai).recommend(40, "math", {}, "")

        assert recs[0].type == "remedial"
        assert recs[0].ai_generated is False

    def test_empty_ai_answer_falls_back(self):
        ai = MagicMock(spec=AIRecommendationPort)
        ai.recommend.return_value = []
        recs = RecommendationService(ai_recommender=ai).recommend(90, "math", {}, "")
        assert recs[0].type == "advanced"

    @pytest.mark.parametrize("score,expected", [(10, "remedial"), (60, "practice"), (95, "advanced")])
    def test_fallback_tiers(self, score, expected):
        recs = RecommendationService().fallback_recommendations(score, "math")
        assert len(recs) == 1
        assert recs[0].type == expected

    def test_fallback_adds_matching_resources(self):
        repo = MagicMock(spec=IResourceRepository)
        repo.find.return_value = [
            Resource(_id=f"r{i}", title=f"Basics {i}", subject="math", difficulty="easy", type="video")
            for i in range(5)
        ]
        recs = RecommendationService(resource_repository=repo).fallback_recommendations(20, "math")

        repo.find.assert_called_once_with(subject="math", difficulty="easy")
        assert [r.title for r in recs] == ["Review Basic Concepts", "Basics 0", "Basics 1", "Basics 2"]
        assert all(r.priority == "high" for r in recs[1:])

    def test_resource_lookup_failure_is_ignored(self):
        repo = MagicMock(spec=IResourceRepository)
        repo.find.side_effect = RuntimeError("db down")
        recs = RecommendationService(resource_repository=repo).fallback_recommendations(70, "math")
        assert [r.type for r in recs] == ["practice"]
