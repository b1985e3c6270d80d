# utils/exceptions.py
# Domain errors raised by the models layer; main.py maps each one to a single HTTP error.


class ExtractionError(Exception):
    """ Resume extraction could not produce a record (pattern engine or LLM failure). """


class SearchError(Exception):
    """ The backing store could not be queried or returned an unusable response. """


class AIServiceError(Exception):
    """ The AI query service or the LLM completion API failed. """


class AuthError(Exception):
    """ Missing, invalid or rejected session credentials. """


class RequestInFlightError(Exception):
    """ The same logical action is already running for this caller. """

    def __init__(self, action: str):
        super().__init__(f"A '{action}' request is already in progress")
        self.action = action
