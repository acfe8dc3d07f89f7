"""Application constants."""

USER_AGENT = "gee-dhis2/0.3 (+earth-engine-import)"
COMMANDS = (
    "import",
    "validate-config",
)
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
FEATURE_TYPES = ("NONE", "POINT", "POLYGON", "MULTI_POLYGON", "SYMBOL")
DAILY_PERIOD_FORMAT = "%Y%m%d"
VALUE_DECIMALS = 18
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "rule",
    "mapping",
    "dataset",
    "org_unit",
    "band",
    "event",
    "status",
    "duration_ms",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
