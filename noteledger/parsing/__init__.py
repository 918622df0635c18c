"""Note parsing package: normalizer, line classifier, transaction assembler."""

from noteledger.parsing.assembler import (
    StorageRowError,
    assemble_record,
    record_from_storage_row,
    records_from_storage_rows,
)
from noteledger.parsing.classifier import (
    SAMPLE_NOTE,
    LineClassifier,
    RuleConfigurationError,
    classify,
)
from noteledger.parsing.normalizer import is_separator, normalize_name, normalize_text

__all__ = [
    "SAMPLE_NOTE",
    "LineClassifier",
    "RuleConfigurationError",
    "StorageRowError",
    "assemble_record",
    "classify",
    "is_separator",
    "normalize_name",
    "normalize_text",
    "record_from_storage_row",
    "records_from_storage_rows",
]
