class AIJudgeError(Exception):
    """Base error; ``status_code`` is what the HTTP layer answers with."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CaseNotFoundError(AIJudgeError):
    status_code = 404

    def __init__(self, case_id: str):
        super().__init__("Case not found")
        self.case_id = case_id


class CaseStateError(AIJudgeError):
    """The case is not in a state that allows the requested action."""

    status_code = 400


class ArgumentLimitError(CaseStateError):
    pass


class InvalidCaseIdError(AIJudgeError):
    status_code = 400


class UnsupportedFileTypeError(AIJudgeError):
    status_code = 400


class DocumentParseError(AIJudgeError):
    status_code = 500


class StorageError(AIJudgeError):
    status_code = 500


class AIServiceError(AIJudgeError):
    status_code = 502


class AIServiceNotConfiguredError(AIServiceError):
    status_code = 503
