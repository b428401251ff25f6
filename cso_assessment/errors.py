"""Exceptions raised at the orchestration boundary of the assessment engine."""


class AssessmentNotFoundError(LookupError):
    """Assessment (or its report) does not exist in the store."""

    def __init__(self, assessment_id: str, what: str = "Assessment"):
        self.assessment_id = assessment_id
        super().__init__(f"{what} not found for assessment {assessment_id!r}")


class InvalidConditionError(ValueError):
    """A suggestion rule's condition does not match any supported shape."""

    def __init__(self, message: str, raw: object = None):
        self.raw = raw
        super().__init__(message)


class AssessmentCompletedError(RuntimeError):
    """Responses cannot be written once an assessment is COMPLETED."""

    def __init__(self, assessment_id: str):
        self.assessment_id = assessment_id
        super().__init__(f"Assessment {assessment_id!r} is completed and can no longer be modified")
