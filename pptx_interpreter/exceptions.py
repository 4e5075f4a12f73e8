"""Custom exceptions for PPTX Interpreter."""

from typing import Optional


class PptxInterpreterError(Exception):
    """Base exception for PPTX Interpreter errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ArchiveError(PptxInterpreterError):
    """Exception raised when the zip container is corrupt or unreadable."""

    pass


class MissingMember(ArchiveError, KeyError):
    """Exception raised when a requested archive member does not exist."""

    def __init__(self, member: str):
        super().__init__("Archive member not found", member)
        self.member = member

    def __str__(self) -> str:
        return PptxInterpreterError.__str__(self)


class ParsingError(PptxInterpreterError):
    """Exception raised during document parsing."""

    pass


class MalformedXml(ParsingError):
    """Exception raised when a part is not well-formed XML."""

    def __init__(self, part: str, details: Optional[str] = None, line: Optional[int] = None):
        super().__init__(f"Malformed XML in part {part}", details)
        self.part = part
        self.line = line


class InvalidLocator(PptxInterpreterError):
    """Exception raised when a locator does not resolve to a node."""

    def __init__(self, locator, details: Optional[str] = None):
        super().__init__(f"Locator does not resolve: {locator}", details)
        self.locator = locator


class DirectiveError(PptxInterpreterError):
    """Exception raised for malformed replacement directives."""

    pass
