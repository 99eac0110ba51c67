"""Custom exceptions for classsplit.

This module defines a hierarchy of exceptions used throughout classsplit
to provide clear, actionable error messages for the different ways a single
input can fail. Budget violations are never errors: an oversized member is
reported as a warning and placed in a container of its own.
"""


class ClassSplitError(Exception):
    """Base exception for all classsplit errors.

    All exceptions raised by classsplit inherit from this class, making it
    easy to catch every per-input failure with a single except clause.

    Example:
        try:
            splitter.split_file(path)
        except ClassSplitError as e:
            print(f"classsplit error: {e}")
    """

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


class InputError(ClassSplitError):
    """Base exception for problems with an input file."""

    pass


class SourceReadError(InputError):
    """Failed to read a source file.

    Attributes:
        path: The path that could not be read.
        cause: The underlying exception that caused the failure.
    """

    def __init__(self, path: str, cause: Exception | None = None):
        self.path = path
        self.cause = cause
        message = f"Failed to read source '{path}'"
        if cause:
            message += f': {cause}'
        super().__init__(message)


class SourceParseError(InputError):
    """The source is not syntactically valid.

    Attributes:
        path: The path of the invalid source.
        errors: Locations of the syntax errors, e.g. ``'12:5'``.
    """

    def __init__(self, path: str, errors: list[str] | None = None):
        self.path = path
        self.errors = errors or []
        message = f"Failed to parse '{path}'"
        if errors:
            message += f': syntax errors at {", ".join(errors)}'
        super().__init__(message)


class AggregateNotFoundError(InputError):
    """The source does not declare exactly one splittable type.

    Attributes:
        path: The path of the source.
        found: Names of the candidate types that were found.
    """

    def __init__(self, path: str, found: list[str] | None = None):
        self.path = path
        self.found = found or []
        if not self.found:
            message = f"No class found in '{path}'"
        else:
            message = (
                f"Expected a single type in '{path}', found {len(self.found)}: "
                f'{", ".join(self.found)}'
            )
        super().__init__(message)


class UnsupportedAggregateError(InputError):
    """The type cannot be spread over several files.

    Attributes:
        path: The path of the source.
        name: Name of the type.
        reason: Why the type cannot be split.
    """

    def __init__(self, path: str, name: str, reason: str):
        self.path = path
        self.name = name
        self.reason = reason
        super().__init__(f"Cannot split '{name}' in '{path}': {reason}")


class RenderError(ClassSplitError):
    """The renderer failed to produce text for a group.

    Attributes:
        unit_count: Number of units in the group being rendered.
        role: The role the group was rendered in.
        cause: The underlying exception that caused the failure.
    """

    def __init__(self, unit_count: int, role: str, cause: Exception | None = None):
        self.unit_count = unit_count
        self.role = role
        self.cause = cause
        message = f'Failed to render {unit_count} member(s) as {role} container'
        if cause:
            message += f': {cause}'
        super().__init__(message)


class PlanError(ClassSplitError):
    """A distribution plan violated one of its invariants."""

    pass


class ConfigurationError(ClassSplitError):
    """Error in configuration.

    Attributes:
        config_path: The path to the configuration file, if applicable.
        field: The specific configuration field that is invalid.
    """

    def __init__(
        self, message: str, config_path: str | None = None, field: str | None = None
    ):
        self.config_path = config_path
        self.field = field
        full_message = message
        if config_path:
            full_message = f"{message} in '{config_path}'"
        if field:
            full_message += f' (field: {field})'
        super().__init__(full_message)


class OutputError(ClassSplitError):
    """Error writing an output container.

    Containers are written independently, so siblings written before the
    failure are left in place.

    Attributes:
        output_path: The path where output was being written.
        cause: The underlying exception that caused the failure.
    """

    def __init__(self, output_path: str, cause: Exception | None = None):
        self.output_path = output_path
        self.cause = cause
        message = f"Failed to write output to '{output_path}'"
        if cause:
            message += f': {cause}'
        super().__init__(message)
