class HuffmanError(Exception):
    """Base class for every error raised by the Huffman codec."""


class EmptyInputError(HuffmanError, ValueError):
    """Raised when ``compress`` is given a zero-length buffer."""

    def __init__(self, message: str = "empty input"):
        super().__init__(message)


class TreeBuildError(HuffmanError):
    """Raised when no code tree could be built from the frequency table."""

    def __init__(self, message: str = "failed to build code tree"):
        super().__init__(message)


class MalformedContainerError(HuffmanError, ValueError):
    """Raised when the container framing is too short or inconsistent."""


class CorruptHeaderError(HuffmanError, ValueError):
    """Raised when the serialized header cannot be parsed."""


class UnmatchedResidualBitsError(HuffmanError, ValueError):
    """Raised when payload bits do not resolve to a code in the table."""
