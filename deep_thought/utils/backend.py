import random

import numpy as xp

# shared stream for everything built without an explicit seed
_rng = xp.random.default_rng()


def set_seed(seed):
    global _rng
    random.seed(seed)
    xp.random.seed(seed)
    _rng = xp.random.default_rng(seed)


def default_rng(seed=None):
    if seed is None:
        return _rng
    return xp.random.default_rng(seed)
