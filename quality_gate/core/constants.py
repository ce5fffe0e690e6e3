"""
Constants
Centralised storage for pattern ids, stage names and tier composition.
"""
ARROW = "→"

# Fix patterns
PATTERN_MISSING_IMPORT = "missing-import"
PATTERN_UNREGISTERED_ROUTE = "unregistered-route"
PATTERN_IMPORT_PATH = "wrong-import-path"
PATTERN_TYPE_ANNOTATION = "missing-type-annotation"
PATTERN_UNUSED_IMPORT = "unused-import"
PATTERN_UNKNOWN = "unknown"

FIX_PATTERNS = [
    PATTERN_MISSING_IMPORT,
    PATTERN_UNREGISTERED_ROUTE,
    PATTERN_IMPORT_PATH,
    PATTERN_TYPE_ANNOTATION,
    PATTERN_UNUSED_IMPORT,
]

# Severities
SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

# Stages
STAGE_TYPECHECK = "typecheck"
STAGE_LINT = "lint"
STAGE_PREBUILD = "prebuild"
STAGE_UNIT_TESTS = "unit-tests"
STAGE_E2E = "e2e"

# Tiers, cheapest first. Each tier runs the stages of all lower tiers first.
TIER_ORDER = ["tier1", "tier2", "tier3"]
TIER_STAGES: dict[str, list[str]] = {
    "tier1": [STAGE_TYPECHECK, STAGE_LINT],
    "tier2": [STAGE_PREBUILD, STAGE_UNIT_TESTS],
    "tier3": [STAGE_E2E],
}

# Synthetic diagnostic rules produced by the stage runners themselves
RULE_TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
RULE_STAGE_TIMEOUT = "STAGE_TIMEOUT"
RULE_NON_ZERO_EXIT = "NON_ZERO_EXIT"
RULE_INTERNAL_ERROR = "INTERNAL_ERROR"
