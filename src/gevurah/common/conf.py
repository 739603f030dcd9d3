DEFAULT_STEP_BUDGET = 5000         # Instructions per run
DEFAULT_MAX_EXECUTE_DEPTH = 8      # Nested EXECUTE levels
DEFAULT_TIMEOUT = None             # Seconds of wall-clock time per run, None is unbounded

FLAG_EQUAL = 'EQUAL'
FLAG_BELOW = 'BELOW'
FLAG_ABOVE = 'ABOVE'
FLAG_NAMES = (FLAG_EQUAL, FLAG_BELOW, FLAG_ABOVE)

NULL_ARCHIVE_ENTRY = 'NULL'        # QUERY result for a missing archive key
COMPONENT_SEPARATOR = '.'          # Composite identifier separator for RESTRUCTURE

REGISTER_PATTERN = r'R(?:[0-9]+|_\w+)'   # R1, R_SYMBOL
MAX_NUMBER_DIGITS = 1000           # Longest numeric literal a script may carry
