"""Row-level validation rules and reporting."""

from cleanpipe.validation.rules import get_predicate, grade_score_consistency, register_predicate
from cleanpipe.validation.reporters import build_validation_report, save_report
