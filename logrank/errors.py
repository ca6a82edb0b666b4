from typing import Optional


class LogRankError(Exception):
    """Base class for every fatal error raised by the ranking job."""


class ParseError(LogRankError, ValueError):
    def __init__(self, message: str, line_number: Optional[int] = None, line: Optional[str] = None):
        self.line_number = line_number
        self.line = line
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class ConfigurationError(LogRankError, ValueError):
    pass
