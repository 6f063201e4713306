"""
Exception types raised by the fuzzy inference engine.

Configuration errors surface while the engine is being assembled (unknown
operator names, bad term parameters, malformed rules) and are meant to abort
the build. Evaluation errors surface during a process() cycle.
"""


class FuzzyError(Exception):
    """Base class for every error raised by the engine."""


class ConfigurationError(FuzzyError):
    """Raised when the engine model cannot be built as requested."""


class RuleParseError(ConfigurationError):
    """
    Raised when the text of a rule cannot be parsed or loaded.

    Attributes:
        rule_text (str): The offending rule, as written.
    """

    def __init__(self, message: str, rule_text: str = ""):
        super().__init__(message)
        self.rule_text = rule_text


class EvaluationError(FuzzyError):
    """Raised when a single evaluation cycle cannot be completed."""
