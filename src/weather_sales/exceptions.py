"""
Exceptions raised by the weather and sales data pipeline.
"""


class PipelineError(Exception):
    """Base error for pipeline failures."""
    def __init__(self, message):
        self.message = message
        super().__init__(self.message)


class RawLoadError(PipelineError):
    """A source file could not be loaded into its raw table."""
    def __init__(self, message, entity=None, file_path=None, line=None):
        self.entity = entity
        self.file_path = file_path
        self.line = line

        context = []
        if entity:
            context.append(f"entity={entity}")
        if file_path:
            context.append(f"file={file_path}")
        if line is not None:
            context.append(f"line={line}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class ViewQueryError(PipelineError):
    """A query against a harmonized or analytics view failed."""
    def __init__(self, message, query=None):
        self.query = query or {}
        if self.query:
            params = ', '.join(f"{key}={value}" for key, value in self.query.items())
            message = f"{message} ({params})"
        super().__init__(message)
