class GameError(Exception):
    """Base class for failures reported by the game engine."""

    code = 0
    default_message = 'Game error'

    def __init__(self, message: str = ''):
        super().__init__(message or self.default_message)


class InsufficientSubmissions(GameError):
    """Fewer than two players submitted a phrase in a standard round."""

    code = 1
    default_message = 'Not enough players!'


class NoVotesCast(GameError):
    """The voting window closed without a single valid vote."""

    code = 2
    default_message = 'No one voted!'


class GameAborted(GameError):
    code = 3
    default_message = 'Game has been stopped'


class ArenaBusy(GameError):
    code = 4
    default_message = 'A game is already running in this arena'


class ArenaNotFound(GameError):
    code = 5
    default_message = 'No game is running in this arena'
