"""Unit tests for upload checks."""

import uuid

from kms.engines.validation.content_validator import ContentValidator


class TestValidateContent:

    def test_complete_content_is_valid(self):
        result = ContentValidator.validate_content("Pricing playbook", "How we price retainers")
        assert result.is_valid
        assert result.errors == []

    def test_blank_description(self):
        result = ContentValidator.validate_content("Pricing playbook", "   ")
        assert not result.is_valid
        assert result.errors == ["Description is missing"]

    def test_both_missing_reported_together(self):
        result = ContentValidator.validate_content(None, "")
        assert result.errors == ["Title is missing", "Description is missing"]


class TestValidateMetadata:

    def test_all_present(self):
        result = ContentValidator.validate_metadata(
            {"category": "Strategy", "tags": ["pricing"], "author": uuid.uuid4()}
        )
        assert result.is_valid

    def test_missing_category(self):
        result = ContentValidator.validate_metadata(
            {"category": " ", "tags": ["pricing"], "author": uuid.uuid4()}
        )
        assert result.errors == ["Missing required metadata: category"]

    def test_missing_tags_and_author(self):
        result = ContentValidator.validate_metadata({"category": "Strategy"})
        assert result.errors == [
            "Missing required metadata: tags",
            "Missing required metadata: author",
        ]


class TestPolicy:

    def test_forbidden_keyword_case_insensitive(self):
        result = ContentValidator.check_policy("CONFIDENTIAL client notes", ["Confidential"])
        assert not result.compliant
        assert result.violations == ["Title contains forbidden keyword: Confidential"]

    def test_clean_title(self):
        result = ContentValidator.check_policy("Client notes", ["Confidential", "Secret"])
        assert result.compliant
        assert result.violations == []

    def test_no_keywords_configured(self):
        assert ContentValidator.check_policy("Confidential", []).compliant


class TestExtractKeywords:

    def test_most_frequent_first(self):
        keywords = ContentValidator.extract_keywords(
            "Pricing strategy for pricing teams and the pricing committee"
        )
        assert keywords[0] == "pricing"
        assert "for" not in keywords
        assert "the" not in keywords

    def test_limit(self):
        text = "alpha bravo charlie delta echo foxtrot golf hotel"
        assert len(ContentValidator.extract_keywords(text)) == ContentValidator.MAX_KEYWORDS
        assert ContentValidator.extract_keywords(text, limit=2) == ["alpha", "bravo"]

    def test_short_words_and_numbers_ignored(self):
        assert ContentValidator.extract_keywords("an ox 2024 at go") == []
