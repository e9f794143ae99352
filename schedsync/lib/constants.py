"""Shared constants for schedsync."""

# Scheduling Status value that takes an item out of active scheduling
STATUS_ON_HOLD = "On Hold"

STATE_CLOSED = "closed"

# Assignee used for tasks nobody owns
UNASSIGNED_USER = "unassigned"

# Estimates used for scheduling when neither estimate is set
DEFAULT_LOW_ESTIMATE = 1.0
DEFAULT_HIGH_ESTIMATE = 4.0

# Default working hours per weekday for every user
DEFAULT_WEEKDAY_HOURS = 8

# SchedulingIssue reasons
REASON_CYCLE = "cycle"
REASON_MISSING_DEPENDENCY = "missing_dependency"
REASON_ONHOLD_DEPENDENCY = "onhold_dependency"
REASON_INACCESSIBLE_DEPENDENCY = "inaccessible_dependency"
REASON_MISSING_ESTIMATE = "missing_estimate"
REASON_INVALID_ESTIMATE = "invalid_estimate"
REASON_AT_RISK = "at_risk"
VALID_REASONS = {
    REASON_CYCLE,
    REASON_MISSING_DEPENDENCY,
    REASON_ONHOLD_DEPENDENCY,
    REASON_INACCESSIBLE_DEPENDENCY,
    REASON_MISSING_ESTIMATE,
    REASON_INVALID_ESTIMATE,
    REASON_AT_RISK,
}

# DateUpdate clear reasons
CLEAR_CLOSED = "closed"
CLEAR_ON_HOLD = "on hold"
CLEAR_UNSCHEDULABLE = "unschedulable"
VALID_CLEAR_REASONS = {CLEAR_CLOSED, CLEAR_ON_HOLD, CLEAR_UNSCHEDULABLE}

# Placeholder substituted for private repository details
PRIVATE_PLACEHOLDER = "[private]"

DATE_FORMAT = "%Y-%m-%d"

# Exit codes
EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2
