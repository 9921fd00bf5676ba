from .models import RuleInfo, RuleLocation
from .rules import (
    get_document_symbols,
    get_rule_free_variables,
    get_rule_info,
    get_rule_location,
    get_rule_signature,
)

__all__ = [
    "RuleInfo",
    "RuleLocation",
    "get_document_symbols",
    "get_rule_free_variables",
    "get_rule_info",
    "get_rule_location",
    "get_rule_signature",
]
