"""Error taxonomy shared by acquisition, analysis, session and export code."""


class SupportIQError(Exception):
    """Base class for all application errors."""


class AudioValidationError(SupportIQError):
    """The submitted file or chunk is not acceptable audio. Never changes session state."""


class DeviceError(SupportIQError):
    """Microphone capture produced nothing usable. Never changes session state."""


class AnalysisError(SupportIQError):
    """The analysis call failed; the session moves to Error."""


class TransportError(AnalysisError):
    """The remote call failed, was not configured, or returned an empty body."""


class SchemaError(AnalysisError):
    """The remote response could not be parsed or did not match the result schema."""


class ChartRenderError(SupportIQError):
    """The sentiment chart could not be rasterized."""


class InvalidTransition(SupportIQError):
    """A session state change that the state machine does not allow."""
