"""Exception taxonomy for propsloader-core."""

from typing import Optional


class PropsLoaderError(Exception):
    """Base exception for all propsloader errors."""

    pass


# Compile-time errors


class ParseError(PropsLoaderError):
    """Malformed document: unknown element, missing or conflicting attributes."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        self.message = message
        self.source = source
        self.line = line
        self.column = column
        super().__init__(self._format())

    def _format(self) -> str:
        location = []
        if self.source:
            location.append(str(self.source))
        if self.line is not None:
            location.append(f"line {self.line}")
        if self.column is not None:
            location.append(f"column {self.column}")
        if not location:
            return self.message
        return f"{', '.join(location)}: {self.message}"


class TemplateSyntaxError(ParseError):
    """Malformed ${...} reference or trailing backslash in a template string."""

    def __init__(
        self,
        reason: str,
        template: str,
        source: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        self.reason = reason
        self.template = template
        super().__init__(f"{reason}: {template!r}", source, line, column)


# Evaluation-time errors


class ConfigurationError(PropsLoaderError):
    """Raised by an <error> element; the message is authored by the config file."""

    pass


class MissingDecryptorError(PropsLoaderError):
    """Encrypted value encountered but no decryptor was supplied."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(
            f"Encountered encrypted value for '{key}', but no decryptor was supplied"
        )


class DecryptionFailure(PropsLoaderError):
    """The decryptor failed for a particular key."""

    def __init__(self, key: str, cause: BaseException) -> None:
        self.key = key
        self.cause = cause
        super().__init__(f"Failed to decrypt value for '{key}': {cause}")


# Ops errors


class LoadError(PropsLoaderError):
    """Failed to locate or read a configuration file."""

    def __init__(self, message: str, path: Optional[object] = None) -> None:
        self.path = path
        super().__init__(message)
