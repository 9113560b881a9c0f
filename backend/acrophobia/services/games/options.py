from dataclasses import dataclass, fields
from typing import Any, Mapping

DEFAULT_CHAR_POOL = 'AAAABBBBCCCCDDDDEEEEEFFFFGGGGHHHHIIIIJJKKLLLLMMMMNNNNOOOPPPPQQRRRSSSSTTTTUVVWWXYZ'


@dataclass(frozen=True)
class GameOptions:
    """Tunables for a single game. Immutable once the game is created.

    Each field can be overridden from the Flask config with an ``ACRO_``
    prefixed, upper-cased key (``ACRO_POINT_CAP``, ``ACRO_CHAR_POOL``...).
    """

    char_pool: str = DEFAULT_CHAR_POOL
    face_off_rounds: int = 3
    face_off_min_letters: int = 3
    point_cap: int = 30
    secs_after_results: float = 7.0
    secs_between_messages: float = 5.0
    secs_between_rounds: float = 7.0
    secs_per_acro_round: int = 60
    secs_per_vote_round: int = 30
    secs_per_face_off_round: int = 30
    secs_between_face_off_rounds: float = 2.0
    min_letters: int = 3
    max_letters: int = 7
    points_vote_for_winner: int = 1
    points_fastest_with_vote: int = 2
    input_prefix: str = ''

    @classmethod
    def from_config(cls, config: Mapping[str, Any], **overrides) -> 'GameOptions':
        values = {}
        for f in fields(cls):
            key = f'ACRO_{f.name.upper()}'
            if key in config and config[key] is not None:
                values[f.name] = type(f.default)(config[key])
        values.update(overrides)
        return cls(**values)
