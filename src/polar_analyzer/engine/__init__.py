from .errors import (
    ErrorKind,
    InvariantViolation,
    ParseErrorKind,
    PolarError,
    PolarErrorDetail,
)
from .kb import KnowledgeBase
from .parser import Line, QueryLine, RuleLine, parse_file, parse_file_with_errors, parse_query
from .polar import Polar
from .rules import GenericRule, Parameter, Rule
from .sources import Source, SourceInfo, SourceKind, Sources
from .terms import Operator, Term, TermKind

__all__ = [
    "ErrorKind",
    "GenericRule",
    "InvariantViolation",
    "KnowledgeBase",
    "Line",
    "Operator",
    "Parameter",
    "ParseErrorKind",
    "Polar",
    "PolarError",
    "PolarErrorDetail",
    "QueryLine",
    "Rule",
    "RuleLine",
    "Source",
    "SourceInfo",
    "SourceKind",
    "Sources",
    "Term",
    "TermKind",
    "parse_file",
    "parse_file_with_errors",
    "parse_query",
]
