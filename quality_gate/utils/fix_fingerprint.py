"""
Fix Fingerprint Utility
========================
Generates stable fingerprints for proposed fixes so one auto-fix
invocation never attempts the same edit twice.

Error Signature:
    pattern + file + line + subject (symbol / specifier / variable)
    Identifies the same defect reported twice (e.g. by tsc and ESLint).

Fix Fingerprint:
    the full fix proposal, serialized with sorted keys
    Identifies the exact same edit being proposed again.
"""
import hashlib
import json

from quality_gate.models.diagnostic import ParsedError


def generate_error_signature(parsed: ParsedError) -> str:
    """
    Stable signature for a categorized diagnostic.

    Parameters
    ----------
    parsed : ParsedError
        Any categorized diagnostic.

    Returns
    -------
    str
        16 hex chars; the free-text ``message`` does not participate.
    """
    payload = parsed.model_dump(exclude={"message"})
    raw = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]


def generate_fix_fingerprint(fix) -> str:
    """Stable fingerprint of a Fix proposal (confidence excluded)."""
    payload = fix.model_dump(exclude={"confidence"})
    raw = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]
