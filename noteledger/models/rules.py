"""
Classification Rule Table

DESIGN DECISION: Keyword precedence is data, not control flow.
Rules are evaluated top-to-bottom and the first keyword found in the
lower-cased line decides the category. Structural rules (lending, others,
money in) come first because they also extract a name or detail that a
generic single-word match would lose.

Patterns may contain the placeholder "{marker}", replaced with the escaped
currency marker when the classifier compiles the table. The marker is
matched case-sensitively and may be several characters long, so it belongs
in a lookahead or a plain sequence, never inside a character class.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from noteledger.config import ParserSettings, get_settings
from noteledger.models.transaction import (
    TransactionCategory,
    TransactionDirection,
    direction_for,
)


MONTH_ABBREVIATIONS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]


class ExtractionTarget(str, Enum):
    """What a rule's pattern captures from the original-case line."""
    NONE = "none"
    DETAIL = "detail"
    COUNTERPARTY = "counterparty"  # also becomes the detail


class KeywordRule(BaseModel):
    """One row of the ordered rule table."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)
    
    keyword: str = Field(
        ...,
        min_length=1,
        description="Substring searched for in the lower-cased line"
    )
    category: TransactionCategory
    direction: Optional[TransactionDirection] = Field(
        default=None,
        description="Optional; must agree with the category when given"
    )
    extract: ExtractionTarget = ExtractionTarget.NONE
    pattern: Optional[str] = Field(
        default=None,
        description="Case-insensitive regex whose first group is the extracted text"
    )
    
    @field_validator('keyword')
    @classmethod
    def lower_keyword(cls, v: str) -> str:
        return v.lower()
    
    @model_validator(mode='after')
    def validate_rule(self) -> 'KeywordRule':
        """Direction is a function of category; extraction needs a pattern."""
        expected = direction_for(self.category)
        if self.direction is not None and self.direction != expected:
            raise ValueError(
                f"Rule '{self.keyword}' declares {self.direction.value} "
                f"but {self.category.value} is {expected.value}"
            )
        if self.extract != ExtractionTarget.NONE and not self.pattern:
            raise ValueError(f"Rule '{self.keyword}' extracts {self.extract.value} without a pattern")
        return self
    
    @property
    def resolved_direction(self) -> TransactionDirection:
        return direction_for(self.category)


def default_rules() -> list[KeywordRule]:
    """The built-in rule table, in precedence order."""
    return [
        KeywordRule(
            keyword="lent",
            category=TransactionCategory.LENT,
            extract=ExtractionTarget.COUNTERPARTY,
            pattern=r"lent to\s+((?:(?!{marker})[^-\d])+)",
        ),
        KeywordRule(
            keyword="others",
            category=TransactionCategory.OTHERS,
            extract=ExtractionTarget.DETAIL,
            pattern=r"others\s*(?:-\s?[o0]\s?-|[:-])?\s*([^-]+)",
        ),
        KeywordRule(
            keyword="money in",
            category=TransactionCategory.MONEY_IN,
            extract=ExtractionTarget.COUNTERPARTY,
            pattern=r"money in\s*:?\s*((?:(?!{marker})[^-\d])+)",
        ),
        KeywordRule(keyword="food", category=TransactionCategory.FOOD),
        KeywordRule(keyword="travel", category=TransactionCategory.TRAVEL),
        KeywordRule(keyword="cloths", category=TransactionCategory.CLOTHS),
        KeywordRule(keyword="clothing", category=TransactionCategory.CLOTHS),
        KeywordRule(keyword="grooming", category=TransactionCategory.GROOMING),
        KeywordRule(keyword="health", category=TransactionCategory.HEALTH),
        KeywordRule(keyword="social", category=TransactionCategory.SOCIAL),
        KeywordRule(keyword="eft", category=TransactionCategory.EFT),
    ]


class ClassifierConfig(BaseModel):
    """
    Injectable configuration for the line classifier.
    
    Evaluated in table order; the fallback category applies when no rule matches.
    """
    model_config = ConfigDict(frozen=True)
    
    currency_marker: str = Field(default="₹", min_length=1)
    month_abbreviations: list[str] = Field(
        default_factory=lambda: list(MONTH_ABBREVIATIONS),
        min_length=1
    )
    rules: list[KeywordRule] = Field(default_factory=default_rules)
    fallback_category: TransactionCategory = TransactionCategory.GENERAL
    separator_min_dashes: int = Field(default=7, ge=2)
    strict_amounts: bool = False
    
    @field_validator('rules')
    @classmethod
    def validate_unique_keywords(cls, v: list[KeywordRule]) -> list[KeywordRule]:
        seen = set()
        for rule in v:
            if rule.keyword in seen:
                raise ValueError(f"Duplicate rule keyword: {rule.keyword}")
            seen.add(rule.keyword)
        return v


def default_classifier_config(
    parser_settings: Optional[ParserSettings] = None,
) -> ClassifierConfig:
    """
    Build the default table, taking marker and parsing switches from settings.
    
    Falls back to the cached application settings when none are passed.
    """
    if parser_settings is None:
        parser_settings = get_settings().parser
    
    return ClassifierConfig(
        currency_marker=parser_settings.currency_marker,
        rules=default_rules(),
        separator_min_dashes=parser_settings.separator_min_dashes,
        strict_amounts=parser_settings.strict_amounts,
    )
