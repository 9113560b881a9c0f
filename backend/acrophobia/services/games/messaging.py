import logging
from typing import Iterable, Optional, Protocol

logger = logging.getLogger(__name__)


class MessageSink(Protocol):
    """Delivery of chat text. Fire-and-forget: must not block and must not raise."""

    def say_public(self, text: str) -> None:
        ...

    def say_private(self, name: str, text: str) -> None:
        ...


class Messenger:
    """A game's voice: addresses players by id and goes silent once the game ends."""

    def __init__(self, sink: MessageSink, names: Optional[list] = None):
        self._sink = sink
        self.names: list = names if names is not None else []
        self.silenced = False

    def silence(self) -> None:
        self.silenced = True

    def name(self, user_id: int) -> str:
        try:
            return self.names[user_id]
        except (IndexError, TypeError):
            return str(user_id)

    def say_public(self, text: str) -> None:
        if self.silenced:
            return
        self._sink.say_public(text)

    def say_private(self, user_id: int, text: str) -> None:
        if self.silenced:
            return
        try:
            name = self.names[user_id]
        except (IndexError, TypeError):
            logger.debug(f"[say-private-skip] unknown user={user_id}")
            return
        self._sink.say_private(name, text)

    def say_each(self, user_ids: Iterable[int], text: str) -> None:
        for user_id in user_ids:
            self.say_private(user_id, text)


def plural(num: int, word: str) -> str:
    return word + ('' if num == 1 else 's')


def milestone_text(secs: int) -> str:
    return f'{secs} seconds left!' if secs > 9 else f'{secs}!'
