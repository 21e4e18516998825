"""Search errors."""


class SearchError(RuntimeError):
    """Base class for errors raised by the search engine."""


class TerminalStateError(SearchError):
    """Raised when a search is requested from a terminal state.

    A terminal root needs no action, so there is nothing to search.
    """


class NoLegalActionsError(SearchError):
    """Raised when a non-terminal state yields zero legal actions.

    This is a logic error in the domain collaborator, not a recoverable
    condition: the state claims the episode is not over but offers no way
    to continue it.
    """

    def __init__(self, state_key: str):
        super().__init__(f"No legal actions from non-terminal state {state_key}")
        self.state_key = state_key
