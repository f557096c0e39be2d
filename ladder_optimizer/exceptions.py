"""Custom exceptions for ladder optimization."""


class LadderOptimizerError(Exception):
    """Base exception for ladder optimizer operations."""

    pass


class ConfigurationError(LadderOptimizerError):
    """Invalid or unreadable configuration."""

    pass


class InstrumentParseError(LadderOptimizerError):
    """Instrument name or expiry label could not be parsed."""

    pass


class CandidateSourceError(LadderOptimizerError):
    """Error obtaining candidate legs or the volatility index."""

    pass
