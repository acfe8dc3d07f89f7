"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class DatasetNotFoundError(ConfigError):
    """Raised when a dataset key is not present in the dataset catalog."""

    error_code = "DATASET_NOT_FOUND"


class ContractError(PipelineError):
    """Raised when the DHIS2 value-set contract would be broken."""

    error_code = "CONTRACT_ERROR"


class StageError(PipelineError):
    """Raised for stage failures that should halt in strict mode."""

    error_code = "STAGE_ERROR"
