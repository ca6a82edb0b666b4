from logrank.errors import ConfigurationError, LogRankError, ParseError
from logrank.logspace import log_add, linear_add

__version__ = "0.1.0"
