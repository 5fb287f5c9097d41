import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from spiralgen import GalaxyParams


class ScriptedRandom:
    """Stand-in random source returning preset arrays.

    ``generate_galaxy`` draws branch progress first, then jitter magnitude,
    then jitter sign; the first call here returns *progress_fractions*
    and every later call returns *fill*.
    """

    def __init__(self, progress_fractions, fill=0.5):
        self._progress = np.asarray(progress_fractions, dtype=np.float64)
        self._fill = fill
        self.calls = []

    def random(self, size):
        self.calls.append(size)
        if len(self.calls) == 1:
            return self._progress.reshape(size).copy()
        return np.full(size, self._fill, dtype=np.float64)


@pytest.fixture
def scripted():
    return ScriptedRandom


@pytest.fixture
def flat_params():
    """No jitter, no spin: every point lies exactly on its branch ray."""
    return GalaxyParams(count=3_000, radius=8.0, branches=5, spin=0.0,
                        randomness=0.0, randomness_power=1.0)
