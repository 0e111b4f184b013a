from typing import Optional


class PddlError(ValueError):
    """Base class for every failure raised while turning PDDL text into structure."""


class EmptyInputError(PddlError):
    def __init__(self, message: str = "PDDL content is empty."):
        super().__init__(message)


class TokenizeEmptyError(PddlError):
    def __init__(self, message: str = "Unable to tokenize the provided PDDL content."):
        super().__init__(message)


class SExprError(PddlError):
    pass


class UnbalancedParensError(SExprError):
    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.position = position


class NoDefinitionsError(PddlError):
    def __init__(self, message: str = "No PDDL definitions were detected."):
        super().__init__(message)


class SemanticParseError(PddlError):
    """A classified definition whose inner structure could not be resolved."""

    def __init__(self, kind: str, message: str):
        super().__init__(f"Failed to parse the {kind} definition: {message}")
        self.kind = kind
        self.detail = message
