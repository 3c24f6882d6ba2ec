class ComplianceAgentError(Exception):
    """Base class for every error raised by the investigator."""


class ConfigError(ComplianceAgentError):
    pass


class ExtractionError(ComplianceAgentError):
    """A page region or field could not be read."""


class SessionError(ExtractionError):
    """
    There is no usable browser page to extract from. This is the only
    extraction failure that aborts an investigation.
    """


class PatternMismatch(ExtractionError):
    """A section was present but its text held no recognisable entities."""

    def __init__(self, section: str, text: str):
        super().__init__(f"No entities matched in section {section!r}")
        self.section = section
        self.text = text


class PortalError(ComplianceAgentError):
    """Navigation against the compliance portal failed."""


class LoginError(PortalError):
    pass


class CustomerSearchError(PortalError):
    pass


class ResearchError(ComplianceAgentError):
    pass
