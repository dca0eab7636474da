"""Trade outcome generation.

The ledger never draws randomness itself. It is handed an outcome source,
a zero-argument callable returning True for a winning trade, so that tests
can force deterministic win/loss sequences.
"""

import random
from typing import Callable, Iterable, Optional, Union

OutcomeSource = Callable[[], bool]

DEFAULT_WIN_PROBABILITY = 0.7


class OutcomeExhaustedError(Exception):
    """Raised when a fixed outcome sequence has no results left."""
    pass


class BernoulliOutcome:
    """Independent win/loss draw with a fixed win probability."""

    def __init__(
        self,
        win_probability: float = DEFAULT_WIN_PROBABILITY,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the draw.

        Args:
            win_probability: Probability of a win, in [0, 1]
            seed: Seed for a private random generator
            rng: Explicit generator, overrides seed
        """
        if not 0.0 <= win_probability <= 1.0:
            raise ValueError(
                f"win_probability must be between 0 and 1, got {win_probability}"
            )
        self.win_probability = win_probability
        self._rng = rng or random.Random(seed)

    def __call__(self) -> bool:
        return self._rng.random() < self.win_probability

    def __repr__(self) -> str:
        return f"BernoulliOutcome(win_probability={self.win_probability})"


class SequenceOutcome:
    """Replays a fixed sequence of outcomes, in order."""

    _WORDS = {"win": True, "w": True, "loss": False, "l": False}

    def __init__(self, results: Iterable[Union[bool, str]]):
        self._results = [self._coerce(r) for r in results]
        self._index = 0

    @classmethod
    def _coerce(cls, value: Union[bool, str]) -> bool:
        if isinstance(value, bool):
            return value
        try:
            return cls._WORDS[str(value).strip().lower()]
        except KeyError:
            raise ValueError(f"Unknown outcome: {value!r}") from None

    @property
    def remaining(self) -> int:
        return len(self._results) - self._index

    def __call__(self) -> bool:
        if self._index >= len(self._results):
            raise OutcomeExhaustedError(
                f"All {len(self._results)} scripted outcomes already used"
            )
        result = self._results[self._index]
        self._index += 1
        return result


def always_win() -> bool:
    return True


def always_lose() -> bool:
    return False
