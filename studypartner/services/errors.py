"""
Error taxonomy for the note pipeline
"""


class StudyPartnerError(Exception):
    """Base class for pipeline errors"""


class EmptyInput(StudyPartnerError):
    """Blank text handed to generation"""


class ExtractionError(StudyPartnerError):
    pass


class UnsupportedType(ExtractionError):
    def __init__(self, kind: str):
        super().__init__(f"Unsupported file type: {kind}")
        self.kind = kind


class ExtractionFailure(ExtractionError):
    pass


class BackendFailure(StudyPartnerError):
    """A single generation or embedding call failed"""

    def __init__(self, backend: str, message: str):
        super().__init__(f"{backend}: {message}")
        self.backend = backend


class ParseFailure(StudyPartnerError):
    """Backend output could not be turned into a valid artifact"""


class EmbeddingUnavailable(StudyPartnerError):
    pass
