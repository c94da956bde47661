"""
Mise - Exceptions.

Only true backend failures are exceptions. A thin corpus or an empty
intermediate candidate list is never an error: the planner routes
around it by widening the search tier or growing the generation gap.
"""


class MiseError(Exception):
    """Base class for all Mise errors."""


class EmptyInputError(MiseError, ValueError):
    """Embedding was requested for blank text (a programming error upstream)."""


class GenerationFailedError(MiseError):
    """
    The generative fallback returned no usable content.

    Raised for malformed structured output, empty recipe lists and
    model/transport failures. The whole planner run fails; a partial
    plan is never returned as if it were complete.
    """

    def __init__(self, message: str, *, requested: int = 0):
        super().__init__(message)
        self.requested = requested
