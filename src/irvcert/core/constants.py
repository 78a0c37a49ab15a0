from __future__ import annotations

# Problem file schema version understood by this release.
PROBLEM_SCHEMA_VERSION = "1"
REPORT_SCHEMA_VERSION = "1"

# Assertion type tags, as written by raire-rs.
ASSERTION_TYPE_NEB = "NEB"
ASSERTION_TYPE_NEN = "NEN"
ASSERTION_TYPES = (ASSERTION_TYPE_NEB, ASSERTION_TYPE_NEN)

# Effect of one assertion on one elimination order suffix.
EFFECT_CONTRADICTION = "contradiction"
EFFECT_SATISFIED = "satisfied"
EFFECT_UNDETERMINED = "undetermined"

# Trim algorithms.
TRIM_NONE = "none"
TRIM_MINIMIZE_TREE = "minimize_tree"
TRIM_MINIMIZE_ASSERTIONS = "minimize_assertions"
TRIM_ALGORITHMS = (TRIM_NONE, TRIM_MINIMIZE_TREE, TRIM_MINIMIZE_ASSERTIONS)

# How far the pruning tree is searched below a node some assertion already prunes.
CONTINUE_STOP_IMMEDIATELY = "stop_immediately"
CONTINUE_ONCE = "continue_once"
CONTINUE_FOREVER = "forever"
CONTINUE_STOP_ON_NEB = "stop_on_neb"
CONTINUATION_POLICIES = (
    CONTINUE_STOP_IMMEDIATELY,
    CONTINUE_ONCE,
    CONTINUE_FOREVER,
    CONTINUE_STOP_ON_NEB,
)

# Verification and trim statuses.
STATUS_PROVEN = "PROVEN"
STATUS_INSUFFICIENT = "INSUFFICIENT"
STATUS_INCONSISTENT = "INCONSISTENT"
STATUS_INVALID_INPUT = "INVALID_INPUT"
STATUS_BUDGET_EXCEEDED = "BUDGET_EXCEEDED"
STATUS_TRIMMED = "TRIMMED"
STATUS_UNOPTIMIZED = "UNOPTIMIZED"

EXIT_SUCCESS = 0
EXIT_INSUFFICIENT = 1
EXIT_INTERNAL_ERROR = 2
EXIT_BUDGET_EXCEEDED = 3
