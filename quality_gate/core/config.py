"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    TYPECHECK_TIMEOUT        — Seconds allowed for the type-check stage (default: 60)
    LINT_TIMEOUT             — Seconds allowed for the lint stage (default: 60)
    PREBUILD_TIMEOUT         — Seconds allowed for native project generation (default: 180)
    UNIT_TEST_TIMEOUT        — Seconds allowed for the unit-test runner (default: 120)
    E2E_TIMEOUT              — Seconds allowed for the end-to-end flow runner (default: 300)
    TIER1_BUDGET / TIER2_BUDGET / TIER3_BUDGET
                             — Wall-clock budget per validation tier (30 / 120 / 600)
    AUTO_FIX_MIN_CONFIDENCE  — Confidence gate for applying fixes (default: 0.95)
    AUTO_FIX_MAX_FIXES       — Fix budget per auto-fix invocation (default: 50)
    REQUIRED_DEPENDENCIES    — Comma-separated runtime deps package.json must declare
    NPX_BINARY               — Node package runner used for JS tooling (default: npx)
    MAESTRO_BINARY           — End-to-end flow runner binary (default: maestro)
    LOG_LEVEL                — Root log level (default: INFO)
    LOG_DIR                  — Directory for dated log files (default: logs)

Timeout Philosophy:
    Every external tool runs as a bounded subprocess. Stage timeouts cap a
    single tool; tier budgets cap the whole escalation level. A stage never
    receives more than what is left of its tier budget.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# Stage timeouts (seconds)
TYPECHECK_TIMEOUT = int(os.getenv("TYPECHECK_TIMEOUT", 60))
LINT_TIMEOUT = int(os.getenv("LINT_TIMEOUT", 60))
PREBUILD_TIMEOUT = int(os.getenv("PREBUILD_TIMEOUT", 180))
UNIT_TEST_TIMEOUT = int(os.getenv("UNIT_TEST_TIMEOUT", 120))
E2E_TIMEOUT = int(os.getenv("E2E_TIMEOUT", 300))

# Tier budgets (seconds)
TIER_BUDGETS: dict[str, int] = {
    "tier1": int(os.getenv("TIER1_BUDGET", 30)),
    "tier2": int(os.getenv("TIER2_BUDGET", 120)),
    "tier3": int(os.getenv("TIER3_BUDGET", 600)),
}

# Smallest timeout a stage is ever given, even when the tier budget is spent
MIN_STAGE_TIMEOUT = 5

# Verification checks (seconds)
VERIFY_TYPESCRIPT_TIMEOUT = int(os.getenv("VERIFY_TYPESCRIPT_TIMEOUT", 60))
VERIFY_CIRCULAR_TIMEOUT = int(os.getenv("VERIFY_CIRCULAR_TIMEOUT", 30))
VERIFY_IMPORTS_TIMEOUT = int(os.getenv("VERIFY_IMPORTS_TIMEOUT", 60))

# Auto-fix gate
AUTO_FIX_MIN_CONFIDENCE = float(os.getenv("AUTO_FIX_MIN_CONFIDENCE", 0.95))
AUTO_FIX_MAX_FIXES = int(os.getenv("AUTO_FIX_MAX_FIXES", 50))

# Result truncation
OUTPUT_EXCERPT_CHARS = 2000
MAX_REPORTED_ERRORS = 10

REQUIRED_DEPENDENCIES: list[str] = [
    dep.strip()
    for dep in os.getenv("REQUIRED_DEPENDENCIES", "expo,react,react-native").split(",")
    if dep.strip()
]

# Tool binaries
NPX_BINARY = os.getenv("NPX_BINARY", "npx")
MAESTRO_BINARY = os.getenv("MAESTRO_BINARY", "maestro")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = os.getenv("LOG_DIR", "logs")
