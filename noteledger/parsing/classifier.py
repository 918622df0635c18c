"""
Line Classifier

Turns the lines of a hand-written note into TransactionRecords.

A line is a candidate only if it carries the currency marker and is not a
separator. For each candidate:
1. Amount: first integer after the marker (0 when no digits follow,
   unless strict amounts are configured)
2. Date: optional "17 Jan" style token anywhere in the line
3. Category: first rule in the table whose keyword occurs in the
   lower-cased line; the fallback category otherwise
4. Name/detail: extracted from the original-case line by the rule's pattern

IMPORTANT: Classification never raises for a bad line. Whatever goes wrong
on one line sends that line, unchanged, to the unrecognized bucket and the
rest of the note carries on.
"""

import re
from typing import NamedTuple, Optional

import structlog

from noteledger.models.rules import (
    ClassifierConfig,
    ExtractionTarget,
    KeywordRule,
    default_classifier_config,
)
from noteledger.models.transaction import ProcessResult, TransactionRecord
from noteledger.parsing.assembler import assemble_record
from noteledger.parsing.normalizer import is_separator, normalize_text


logger = structlog.get_logger(__name__)


SAMPLE_NOTE = """17 Jan
Travel ₹200
Lunch ₹500
lent to Rahul ₹1000
Social ₹300"""


class RuleConfigurationError(Exception):
    """A rule pattern in the classifier configuration does not compile."""
    pass


class _CompiledRule(NamedTuple):
    rule: KeywordRule
    pattern: Optional[re.Pattern]


class LineClassifier:
    """
    Classifies note lines against an ordered rule table.
    
    Holds only compiled, read-only configuration, so one instance can
    serve any number of notes, from any number of threads.
    """
    
    def __init__(self, config: Optional[ClassifierConfig] = None):
        self._config = config if config is not None else default_classifier_config()
        
        marker = re.escape(self._config.currency_marker)
        self._amount_re = re.compile(marker + r"\s*(\d+)")
        
        months = "|".join(re.escape(m) for m in self._config.month_abbreviations)
        self._date_re = re.compile(r"(\d{1,2}\s+(?:" + months + r"))", re.IGNORECASE)
        
        # Rules compile with IGNORECASE; "Rs" must not stop a name at "rs".
        rule_marker = "(?-i:" + marker + ")"
        self._rules = [self._compile_rule(rule, rule_marker) for rule in self._config.rules]
    
    @staticmethod
    def _compile_rule(rule: KeywordRule, marker: str) -> _CompiledRule:
        if not rule.pattern:
            return _CompiledRule(rule, None)
        try:
            pattern = re.compile(rule.pattern.replace("{marker}", marker), re.IGNORECASE)
        except re.error as e:
            raise RuleConfigurationError(
                f"Pattern for rule '{rule.keyword}' does not compile: {e}"
            ) from e
        if pattern.groups < 1:
            raise RuleConfigurationError(
                f"Pattern for rule '{rule.keyword}' has no capture group"
            )
        return _CompiledRule(rule, pattern)
    
    @property
    def config(self) -> ClassifierConfig:
        return self._config
    
    def is_candidate(self, line: str) -> bool:
        """Lines without the marker, and separators, are skipped silently."""
        return (
            self._config.currency_marker in line
            and not is_separator(line, self._config.separator_min_dashes)
        )
    
    def extract_amount(self, line: str) -> int:
        match = self._amount_re.search(line)
        if match:
            return int(match.group(1))
        if self._config.strict_amounts:
            raise ValueError("No amount after the currency marker")
        return 0
    
    def extract_date(self, line: str) -> Optional[str]:
        match = self._date_re.search(line)
        return match.group(1) if match else None
    
    def match_rule(self, line: str) -> Optional[_CompiledRule]:
        """First rule whose keyword occurs in the line wins."""
        lower_line = line.lower()
        for compiled in self._rules:
            if compiled.rule.keyword in lower_line:
                return compiled
        return None
    
    def classify_line(self, line: str) -> TransactionRecord:
        """
        Classify a single candidate line.
        
        Raises on lines that cannot be parsed; classify() turns that into
        an unrecognized entry.
        """
        amount = self.extract_amount(line)
        date = self.extract_date(line)
        
        compiled = self.match_rule(line)
        if compiled is None:
            return assemble_record(
                amount=amount,
                category=self._config.fallback_category,
                source_line=line,
                date=date,
            )
        
        extracted = None
        if compiled.pattern is not None:
            match = compiled.pattern.search(line)
            extracted = match.group(1).strip() if match else None
        
        counterparty_name = None
        if compiled.rule.extract == ExtractionTarget.COUNTERPARTY:
            counterparty_name = extracted
        
        return assemble_record(
            amount=amount,
            category=compiled.rule.category,
            source_line=line,
            date=date,
            counterparty_name=counterparty_name,
            detail=extracted,
        )
    
    def classify(self, text: str) -> ProcessResult:
        """Classify a whole note. Always completes."""
        recognized: list[TransactionRecord] = []
        unrecognized: list[str] = []
        
        for line in normalize_text(text):
            if not self.is_candidate(line):
                continue
            try:
                record = self.classify_line(line)
            except Exception as e:
                logger.warning(
                    "line_unrecognized",
                    line=line,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                unrecognized.append(line)
                continue
            recognized.append(record)
        
        logger.debug(
            "note_classified",
            recognized=len(recognized),
            unrecognized=len(unrecognized),
        )
        return ProcessResult(recognized=recognized, unrecognized=unrecognized)


def classify(text: str, config: Optional[ClassifierConfig] = None) -> ProcessResult:
    """Classify a note with the given (or default) configuration."""
    return LineClassifier(config).classify(text)
