class ProcessorError(Exception):
    """Base exception for all processor-related errors."""

    code = "PROCESSOR_ERROR"


class PipelineStateError(ProcessorError):
    """Raised when a step runs before the step that feeds it."""

    code = "PIPELINE_STATE_ERROR"
