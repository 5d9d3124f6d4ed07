import json
import os
from typing import Any

ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "")
MATCH_TIMEZONE = os.getenv("MATCH_TIMEZONE", "America/New_York")
MATCHES_PER_USER = int(os.getenv("MATCHES_PER_USER", "3"))
MUTUAL_SCORE_THRESHOLD = float(os.getenv("MUTUAL_SCORE_THRESHOLD", "40"))
RELAXED_AGE_SLACK = int(os.getenv("RELAXED_AGE_SLACK", "2"))
MIN_MATCH_AGE = int(os.getenv("MIN_MATCH_AGE", "18"))
MAX_MATCH_AGE = int(os.getenv("MAX_MATCH_AGE", "100"))
MATCH_HISTORY_LIMIT = int(os.getenv("MATCH_HISTORY_LIMIT", "10"))

DEFAULT_SCORING_CONFIG: dict[str, Any] = {
    "AGE_PENALTY_STRICT": float(os.getenv("AGE_PENALTY_STRICT", "30")),
    "AGE_PENALTY_RELAXED": float(os.getenv("AGE_PENALTY_RELAXED", "15")),
    "YEAR_PENALTY": float(os.getenv("YEAR_PENALTY", "20")),
    "SCHOOL_PENALTY": float(os.getenv("SCHOOL_PENALTY", "25")),
    "MAJOR_PENALTY": float(os.getenv("MAJOR_PENALTY", "25")),
    "STRONG_INTEREST_THRESHOLD": float(os.getenv("STRONG_INTEREST_THRESHOLD", "70")),
    "STRONG_INTEREST_MULTIPLIER": float(os.getenv("STRONG_INTEREST_MULTIPLIER", "1.1")),
}

if os.getenv("SCORING_CONFIG_JSON"):
    try:
        DEFAULT_SCORING_CONFIG.update(json.loads(os.getenv("SCORING_CONFIG_JSON", "{}")))
    except json.JSONDecodeError:
        pass
