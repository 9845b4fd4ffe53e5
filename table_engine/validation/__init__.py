from .errors import ValidationError, ValidationIssue
from .table_validation import validate_table_dict

__all__ = ["ValidationError", "ValidationIssue", "validate_table_dict"]
