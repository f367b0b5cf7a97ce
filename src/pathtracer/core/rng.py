"""Explicit random source for Monte Carlo sampling inside Taichi kernels.

Randomness is carried as a 32-bit unsigned state that callers thread through
every sampling function. Each function returns the advanced state together
with its result, so no global generator is involved and a render is
reproducible for a given seed no matter how pixels are scheduled.

Streams are seeded per pixel-sample by cascading Thomas Wang's integer hash
over (seed, pixel index, sample index) and advanced with Marsaglia's
xorshift32 generator.

Example:
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     state = seed_state(ti.u32(7), ti.u32(0), ti.u32(0))
    ...     u, state = random_f32(state)
    ...     return u
"""

import taichi as ti

# xorshift32 is stuck at zero, so a zero seed hash is replaced by this value
NONZERO_STATE = 0x6A09E667

# 2^-24: maps the top 24 bits of the state onto [0, 1)
_INV_2_POW_24 = 1.0 / 16777216.0


@ti.func
def wang_hash(key: ti.u32) -> ti.u32:
    """Scramble a 32-bit integer with Thomas Wang's hash.

    Args:
        key: The value to hash.

    Returns:
        The hashed value. Neighbouring keys produce uncorrelated outputs.
    """
    h = key
    h = (h ^ ti.cast(61, ti.u32)) ^ (h >> ti.cast(16, ti.u32))
    h = h * ti.cast(9, ti.u32)
    h = h ^ (h >> ti.cast(4, ti.u32))
    h = h * ti.cast(0x27D4EB2D, ti.u32)
    h = h ^ (h >> ti.cast(15, ti.u32))
    return h


@ti.func
def xorshift32(state: ti.u32) -> ti.u32:
    """Advance a xorshift32 generator by one step.

    Args:
        state: The current non-zero state.

    Returns:
        The next state.
    """
    x = state
    x = x ^ (x << ti.cast(13, ti.u32))
    x = x ^ (x >> ti.cast(17, ti.u32))
    x = x ^ (x << ti.cast(5, ti.u32))
    return x


@ti.func
def seed_state(seed: ti.u32, pixel_index: ti.u32, sample_index: ti.u32) -> ti.u32:
    """Derive the initial random state for one pixel-sample.

    Args:
        seed: The render seed.
        pixel_index: Linear index of the pixel (row * width + column).
        sample_index: Index of the sample within the pixel.

    Returns:
        A non-zero generator state.
    """
    h = wang_hash(seed ^ wang_hash(pixel_index ^ wang_hash(sample_index)))
    if h == ti.cast(0, ti.u32):
        h = ti.cast(NONZERO_STATE, ti.u32)
    return h


@ti.func
def random_f32(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Args:
        state: The current generator state.

    Returns:
        A tuple (value, state) with the sample and the advanced state.
    """
    next_state = xorshift32(state)
    value = ti.cast(next_state >> ti.cast(8, ti.u32), ti.f32) * _INV_2_POW_24
    return value, next_state
