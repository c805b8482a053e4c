"""Exceptions raised by the conversion pipeline."""


class GPO2AuditError(Exception):
    """Base class for fatal conversion errors."""


class MissingDirectoryError(GPO2AuditError):
    """Raised when the resource directory does not exist."""

    def __init__(self, path):
        super().__init__(f"Resource directory '{path}' does not exist")
        self.path = path


class NoResourceFilesError(GPO2AuditError):
    """Raised when the resource directory holds no resource file."""

    def __init__(self, path, extension):
        super().__init__(f"No '{extension}' file found in '{path}'")
        self.path = path
        self.extension = extension


class ResourceParseError(GPO2AuditError):
    """Raised when a resource document is not well-formed XML."""

    def __init__(self, path, reason):
        super().__init__(f"Could not parse resource file '{path}': {reason}")
        self.path = path
        self.reason = reason


class WriteError(GPO2AuditError):
    """Raised when the audit file cannot be created or written."""

    def __init__(self, path, reason):
        super().__init__(f"Could not write audit file '{path}': {reason}")
        self.path = path
        self.reason = reason


class EnvelopeValueError(GPO2AuditError):
    """Raised when an envelope value cannot be written between double quotes."""

    def __init__(self, field, value):
        super().__init__(f"The {field} '{value}' must not contain double quotes or line breaks")
        self.field = field
        self.value = value
