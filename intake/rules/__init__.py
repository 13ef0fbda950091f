from intake.rules.premium import compute_premium, premium_mismatch
from intake.rules.suffix import SELF_SUFFIX, SuffixAssigner
from intake.rules.validator import validate_dependent

__all__ = [
    "SELF_SUFFIX",
    "SuffixAssigner",
    "compute_premium",
    "premium_mismatch",
    "validate_dependent",
]
