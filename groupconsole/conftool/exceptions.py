"""Exceptions raised while migrating legacy object definitions."""


class MigrationError(Exception):
    """Base exception for all object migration failures."""
    pass


class LegacyParseError(MigrationError):
    """Legacy configuration text could not be parsed.

    Attributes:
        line: 1-based line number where parsing failed (0 if unknown)
    """

    def __init__(self, message: str, line: int = 0):
        self.line = line
        if line:
            message = f"line {line}: {message}"
        super().__init__(message)


class UnsupportedObjectTypeError(MigrationError):
    """No new-generation variant exists for the legacy object type.

    Attributes:
        object_type: Legacy definition type tag (e.g. "timeperiod")
        object_name: Name of the object that could not be converted
    """

    def __init__(self, object_type: str, object_name: str):
        self.object_type = object_type
        self.object_name = object_name
        super().__init__(f'Cannot convert unknown object "{object_name}" of type "{object_type}"')


class UnmappedAttributeError(MigrationError):
    """A legacy attribute has neither a converter nor a name mapping.

    Attributes:
        attribute: Legacy attribute name
        object_dump: Readable dump of the legacy object
    """

    def __init__(self, attribute: str, object_dump: str):
        self.attribute = attribute
        self.object_dump = object_dump
        super().__init__(f'Cannot convert the "{attribute}" property of given v1 object: {object_dump}')


class InvalidAttributeValueError(MigrationError):
    """A legacy attribute value cannot be converted without losing data.

    Attributes:
        attribute: Legacy attribute name
        value: The offending raw value
    """

    def __init__(self, attribute: str, value: str, reason: str):
        self.attribute = attribute
        self.value = value
        super().__init__(f'Invalid value for the "{attribute}" property ({reason}): {value}')
