"""Game domain services: rounds, tallying, scoring, the face-off and timers.

This package contains the game engine, imported by HTTP routes and socket
handlers. It knows nothing about Flask or Socket.IO: it talks to the outside
through a MessageSink and waits through a Scheduler.
"""

from .errors import (
    ArenaBusy,
    ArenaNotFound,
    GameAborted,
    GameError,
    InsufficientSubmissions,
    NoVotesCast,
)
from .game import AcroGame
from .options import GameOptions
from .registry import GameRegistry
from .scheduler import GatedScheduler, ManualScheduler, Scheduler, SocketIOScheduler

__all__ = [
    'AcroGame',
    'ArenaBusy',
    'ArenaNotFound',
    'GameAborted',
    'GameError',
    'GameOptions',
    'GameRegistry',
    'GatedScheduler',
    'InsufficientSubmissions',
    'ManualScheduler',
    'NoVotesCast',
    'Scheduler',
    'SocketIOScheduler',
]
