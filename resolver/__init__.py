"""Entity, date and duplicate resolution."""

from .entity_resolver import EntityResolver, normalize, structural_score
from .dates import parse_natural_date, parse_time, add_months
from .duplicates import DuplicateCandidate, find_duplicates

__all__ = [
    "EntityResolver",
    "normalize",
    "structural_score",
    "parse_natural_date",
    "parse_time",
    "add_months",
    "DuplicateCandidate",
    "find_duplicates",
]
