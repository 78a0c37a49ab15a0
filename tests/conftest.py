from __future__ import annotations

import pytest

from irvcert.core.assertions import Assertion, NotEliminatedBefore, NotEliminatedNext


@pytest.fixture
def guide_assertions() -> list[Assertion]:
    """Four candidate contest won by candidate 2, as used in the raire guide."""
    return [
        NotEliminatedNext(winner=0, loser=1, continuing=(0, 1, 2, 3)),
        NotEliminatedNext(winner=0, loser=3, continuing=(0, 2, 3)),
        NotEliminatedNext(winner=2, loser=0, continuing=(0, 2)),
        NotEliminatedNext(winner=2, loser=3, continuing=(0, 2, 3)),
        NotEliminatedBefore(winner=2, loser=1),
        NotEliminatedNext(winner=0, loser=3, continuing=(0, 3)),
    ]
