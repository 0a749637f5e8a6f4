"""
Upload checks: content completeness, required metadata, governance policy.

All checks run locally on the submitted fields.
"""

import re
from collections import Counter
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel


class CheckResult(BaseModel):
    """Outcome of one upload check."""

    is_valid: bool
    errors: List[str] = []


class PolicyResult(BaseModel):
    """Outcome of the governance policy check."""

    compliant: bool
    violations: List[str] = []


class ContentValidator:
    """
    Validates a knowledge upload before it is stored.

    Checks run in a fixed order: content, metadata, policy. Each returns
    a result object; the knowledge service turns failures into errors.
    """

    REQUIRED_METADATA = ("category", "tags", "author")

    MAX_KEYWORDS = 5
    MIN_KEYWORD_LENGTH = 3

    WORD_PATTERN = re.compile(r"[a-z0-9][a-z0-9\-']*")

    STOPWORDS = frozenset({
        "a", "about", "above", "after", "again", "against", "all", "also", "an",
        "and", "any", "are", "as", "at", "be", "because", "been", "before",
        "being", "below", "between", "both", "but", "by", "can", "could", "did",
        "do", "does", "doing", "down", "during", "each", "few", "for", "from",
        "further", "had", "has", "have", "having", "he", "her", "here", "hers",
        "him", "his", "how", "i", "if", "in", "into", "is", "it", "its",
        "itself", "just", "me", "more", "most", "my", "no", "nor", "not", "now",
        "of", "off", "on", "once", "only", "or", "other", "our", "ours", "out",
        "over", "own", "same", "she", "should", "so", "some", "such", "than",
        "that", "the", "their", "theirs", "them", "then", "there", "these",
        "they", "this", "those", "through", "to", "too", "under", "until", "up",
        "use", "used", "using", "very", "was", "we", "were", "what", "when",
        "where", "which", "while", "who", "whom", "why", "will", "with", "would",
        "you", "your", "yours",
    })

    @staticmethod
    def _is_blank(value: Optional[str]) -> bool:
        return value is None or not str(value).strip()

    @classmethod
    def validate_content(cls, title: Optional[str], description: Optional[str]) -> CheckResult:
        """Title and description must be present and non-blank."""
        errors = []
        if cls._is_blank(title):
            errors.append("Title is missing")
        if cls._is_blank(description):
            errors.append("Description is missing")
        return CheckResult(is_valid=not errors, errors=errors)

    @classmethod
    def validate_metadata(cls, metadata: Dict[str, object]) -> CheckResult:
        """
        Every required metadata field must be present.

        An empty ``tags`` list is acceptable when the caller is going to
        derive tags from the description; pass ``tags=None`` to require it.
        """
        errors = []
        for field in cls.REQUIRED_METADATA:
            value = metadata.get(field)
            if value is None:
                errors.append(f"Missing required metadata: {field}")
            elif isinstance(value, str) and not value.strip():
                errors.append(f"Missing required metadata: {field}")
        return CheckResult(is_valid=not errors, errors=errors)

    @classmethod
    def check_policy(cls, title: str, forbidden_keywords: Iterable[str]) -> PolicyResult:
        """Flag titles that contain any forbidden keyword (case-insensitive)."""
        lowered = (title or "").lower()
        matched = [
            keyword for keyword in forbidden_keywords
            if keyword and keyword.lower() in lowered
        ]
        if matched:
            return PolicyResult(
                compliant=False,
                violations=[
                    f"Title contains forbidden keyword: {keyword}" for keyword in matched
                ],
            )
        return PolicyResult(compliant=True)

    @classmethod
    def extract_keywords(cls, text: str, limit: Optional[int] = None) -> List[str]:
        """
        Most frequent non-stopword terms of a text.

        Ties keep first-occurrence order.
        """
        limit = limit or cls.MAX_KEYWORDS
        words = [
            word.strip("-'")
            for word in cls.WORD_PATTERN.findall((text or "").lower())
        ]
        candidates = [
            word for word in words
            if len(word) >= cls.MIN_KEYWORD_LENGTH
            and word not in cls.STOPWORDS
            and not word.isdigit()
        ]
        # Counter.most_common preserves insertion order among equal counts
        return [word for word, _ in Counter(candidates).most_common(limit)]
