"""
Errors raised by the lightning strike pipeline

All of them are local to a single cycle: the pipeline reports them and stays
ready for the next trigger.
"""


class StrikesError(Exception):
    """Base class for pipeline errors"""


class FetchError(StrikesError):
    """Network failure, non-2xx response or unusable relay/snapshot payload"""


class ParseError(StrikesError):
    """Document could not be parsed at all"""


class CycleCancelled(StrikesError):
    """A newer cycle superseded the one in flight"""
