"""Application constants."""

# Daily goal (reps). Overrides must satisfy MIN <= goal < MAX_EXCLUSIVE.
DEFAULT_DAILY_GOAL = 141
DAILY_GOAL_MIN = 1
DAILY_GOAL_MAX_EXCLUSIVE = 278

# Progress chart window
CHART_WINDOW_DAYS = 14

# Under this many hours left in the day the fallback quote switches to "crunch time"
CRUNCH_TIME_HOURS = 3
