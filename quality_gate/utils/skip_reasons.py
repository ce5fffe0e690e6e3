"""
Skip Reasons
============
Standardised wording for why a diagnostic was not fixed.

Used by the Auto-Fix Orchestrator for AutoFixReport.skipped entries so
callers and logs see the same strings.
"""


# ---------------------------------------------------------------------------
# Skip Reason Constants
# ---------------------------------------------------------------------------
NO_MATCHING_PATTERN = "No matching fix pattern"
FIX_NOT_GENERATED = "Could not generate fix"
DUPLICATE_FIX = "Fix already attempted in this run"
NO_HANDLER = "No fix handler registered"


def low_confidence(confidence: float, min_confidence: float) -> str:
    """
    Reason for a fix below the confidence gate.

    >>> low_confidence(0.85, 0.95)
    'Confidence too low: 85.0% < 95.0%'
    """
    return f"Confidence too low: {confidence * 100:.1f}% < {min_confidence * 100:.1f}%"


def generator_error(exc: Exception) -> str:
    return f"{FIX_NOT_GENERATED}: {exc}"
