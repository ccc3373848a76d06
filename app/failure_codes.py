"""Shared failure code constants for submission and import error handling."""

# Value normalization
INVALID_VALUE = "INVALID_VALUE"
VALUE_TOO_LOW = "VALUE_TOO_LOW"
VALUE_TOO_HIGH = "VALUE_TOO_HIGH"
VALUE_OUT_OF_RANGE = "VALUE_OUT_OF_RANGE"
NO_CATEGORIES = "NO_CATEGORIES"
INVALID_DATE = "INVALID_DATE"
INVALID_PAYLOAD = "INVALID_PAYLOAD"

# Category definitions and config
INVALID_CATEGORIES = "INVALID_CATEGORIES"
EMPTY_CATEGORIES = "EMPTY_CATEGORIES"
INVALID_CATEGORY = "INVALID_CATEGORY"
INVALID_CATEGORY_ID = "INVALID_CATEGORY_ID"
INVALID_CATEGORY_LABEL = "INVALID_CATEGORY_LABEL"
DUPLICATE_CATEGORY_ID = "DUPLICATE_CATEGORY_ID"
INVALID_CATEGORY_CONFIG = "INVALID_CATEGORY_CONFIG"
INVALID_ALLOW_MULTIPLE = "INVALID_ALLOW_MULTIPLE"
INVALID_MAX_SELECTIONS = "INVALID_MAX_SELECTIONS"
INVALID_REQUIRED = "INVALID_REQUIRED"
INVALID_ALLOW_OTHER = "INVALID_ALLOW_OTHER"
INVALID_DISAGGREGATION = "INVALID_DISAGGREGATION"
INVALID_DIMENSION = "INVALID_DIMENSION"
INVALID_DIMENSION_KEY = "INVALID_DIMENSION_KEY"
INVALID_DIMENSION_LABEL = "INVALID_DIMENSION_LABEL"
INVALID_DIMENSION_VALUES = "INVALID_DIMENSION_VALUES"
INVALID_DIMENSION_REQUIRED = "INVALID_DIMENSION_REQUIRED"
INVALID_REPORTING_FREQUENCY = "INVALID_REPORTING_FREQUENCY"
INVALID_EXPECTED_ENTITIES = "INVALID_EXPECTED_ENTITIES"

# Categorical values
REQUIRED_CATEGORY = "REQUIRED_CATEGORY"
MULTIPLE_NOT_ALLOWED = "MULTIPLE_NOT_ALLOWED"
MAX_SELECTIONS_EXCEEDED = "MAX_SELECTIONS_EXCEEDED"
INVALID_CATEGORY_VALUE = "INVALID_CATEGORY_VALUE"
MISSING_DISAGGREGATION = "MISSING_DISAGGREGATION"
INVALID_DISAGGREGATION_VALUE = "INVALID_DISAGGREGATION_VALUE"

# Anomaly and reporting
INVALID_ANOMALY_CONFIG = "INVALID_ANOMALY_CONFIG"
INVALID_FREQUENCY = "INVALID_FREQUENCY"
NOT_ANOMALY = "NOT_ANOMALY"
INVALID_ANOMALY_STATUS = "INVALID_ANOMALY_STATUS"

# Lookups and conflicts
INDICATOR_NOT_FOUND = "INDICATOR_NOT_FOUND"
SUBMISSION_NOT_FOUND = "SUBMISSION_NOT_FOUND"
IMPORT_JOB_NOT_FOUND = "IMPORT_JOB_NOT_FOUND"
TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
DUPLICATE_SUBMISSION = "DUPLICATE_SUBMISSION"

# Import pipeline
DUPLICATE = "DUPLICATE"
INVALID_JOB_STATE = "INVALID_JOB_STATE"
EMPTY_FILE = "EMPTY_FILE"
MISSING_HEADER = "MISSING_HEADER"
ROW_LIMIT_EXCEEDED = "ROW_LIMIT_EXCEEDED"
CSV_PARSE_FAILED = "CSV_PARSE_FAILED"
STAGING_FAILED = "STAGING_FAILED"
VALIDATION_FAILED = "VALIDATION_FAILED"
COMMIT_FAILED = "COMMIT_FAILED"
ROLLBACK_FAILED = "ROLLBACK_FAILED"
INVALID_IMPORT_MODE = "INVALID_IMPORT_MODE"
