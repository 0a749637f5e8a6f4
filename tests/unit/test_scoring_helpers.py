"""Unit tests for training completion and recommendation relevance."""

from kms.engines.recommendation.recommendation_service import score_item
from kms.engines.training.training_service import completion_percentage
from kms.kernel.models.knowledge import KnowledgeItem


class TestCompletionPercentage:

    def test_empty_module(self):
        assert completion_percentage(0, 0) == 0

    def test_rounding(self):
        assert completion_percentage(1, 3) == 33
        assert completion_percentage(2, 3) == 67

    def test_complete(self):
        assert completion_percentage(4, 4) == 100

    def test_never_above_hundred(self):
        assert completion_percentage(5, 4) == 100


def make_item(tags, category="Strategy", region=None):
    return KnowledgeItem(
        title="Item",
        description="text",
        category=category,
        tags=tags,
        region=region,
    )


class TestScoreItem:

    def test_base_score(self):
        result = score_item(make_item(["audit"]), ["pricing"], None)
        assert result == {"score": 0.5, "matched_tags": [], "category_match": False}

    def test_tag_and_region_bonus(self):
        result = score_item(make_item(["Pricing", "retail"], region="EMEA"), ["pricing"], "EMEA")
        assert result["score"] == 0.8
        assert result["matched_tags"] == ["Pricing"]

    def test_category_match(self):
        result = score_item(make_item([], category="Strategy"), ["strategy"], None)
        assert result["category_match"] is True

    def test_capped_at_one(self):
        tags = ["a", "b", "c", "d", "e", "f"]
        result = score_item(make_item(tags, region="APAC"), tags, "APAC")
        assert result["score"] == 1.0
