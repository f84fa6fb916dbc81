from pprint import pformat


class ReporterError(Exception):
    """Base reporter error"""

    def __init__(self, message, report_name=None, attribute=None, record=None):
        self.message = message
        self.report_name = report_name
        self.attribute = attribute
        self.record = record

    def __str__(self):
        segments = []
        if self.report_name is not None:
            segments.append(f"Report: {self.report_name}")
        if self.attribute is not None:
            segments.append(f"Attribute: {self.attribute}")
        if self.record is not None:
            segments.append(f"Record: {pformat(self.record)}")
        additional_info = "\n".join(segments)

        full_message = [self.message]
        if additional_info:
            full_message.append(f"Additional info:\n{additional_info}")

        return "\n".join(full_message)


class ConfigurationError(ReporterError):
    """A reporter error triggered by an unusable report definition or configuration."""


class AttributeNotFoundError(ReporterError):
    """A reporter error triggered by a record lacking a declared attribute while in strict mode."""
