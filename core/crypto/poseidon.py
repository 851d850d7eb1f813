"""
Module 02 - Poseidon Permutation
circomlib-compatible Poseidon over the BN254 scalar field.

Round constants and the MDS matrix are derived with the Grain LFSR
parameter generator of the Poseidon reference implementation
(generate_parameters_grain), which is how circomlib's constant tables were
produced. The permutation then follows circomlib's reference order:

    for each round r:
        state[i] += C[r * t + i]
        state = sbox(state)   # x^5 on every lane in full rounds, lane 0 in partial rounds
        state = M * state

poseidon(inputs) runs the permutation on [0, *inputs] and returns state[0],
matching circomlibjs buildPoseidon(), poseidon-lite and the Noir BN254
Poseidon for the same arity.

Example:
    >>> poseidon([1, 2])
    7853200120776062878684798364095072458815029376092732009249414926327459813530
"""
from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Iterator, Sequence

from core.crypto.field import BN254_PRIME


ALPHA = 5
FULL_ROUNDS = 8

# circomlib N_ROUNDS_P, indexed by t - 2
PARTIAL_ROUNDS = (56, 57, 56, 60, 60, 63, 64, 63, 60, 66, 60, 65, 70, 60, 64, 68)


@dataclass(frozen=True)
class PoseidonParams:
    """Constants for one state width t."""
    t: int
    full_rounds: int
    partial_rounds: int
    round_constants: tuple[int, ...]
    mds: tuple[tuple[int, ...], ...]
    modulus: int


def _grain_bits(modulus: int, t: int, full_rounds: int, partial_rounds: int) -> Iterator[int]:
    """
    Grain LFSR in self-shrinking mode, seeded from the instance description.

    Seed (80 bits): field type (2, prime field = 1), S-box (4, x^alpha = 0),
    field size (12), t (12), R_F (10), R_P (10), then 30 ones.
    """
    field_size = modulus.bit_length()
    seed = (
        f"{1:02b}{0:04b}{field_size:012b}{t:012b}"
        f"{full_rounds:010b}{partial_rounds:010b}" + "1" * 30
    )
    state = deque(int(bit) for bit in seed)

    def clock() -> int:
        bit = state[62] ^ state[51] ^ state[38] ^ state[23] ^ state[13] ^ state[0]
        state.popleft()
        state.append(bit)
        return bit

    for _ in range(160):
        clock()

    while True:
        keep = clock()
        bit = clock()
        if keep:
            yield bit


def _take_int(bits: Iterator[int], count: int) -> int:
    value = 0
    for _ in range(count):
        value = (value << 1) | next(bits)
    return value


def generate_params(t: int, modulus: int = BN254_PRIME) -> PoseidonParams:
    """Derive round constants and the Cauchy MDS matrix for width t."""
    if not 2 <= t <= len(PARTIAL_ROUNDS) + 1:
        raise ValueError(f"Unsupported Poseidon width t={t}")

    partial_rounds = PARTIAL_ROUNDS[t - 2]
    field_size = modulus.bit_length()
    bits = _grain_bits(modulus, t, FULL_ROUNDS, partial_rounds)

    constants = []
    for _ in range((FULL_ROUNDS + partial_rounds) * t):
        value = _take_int(bits, field_size)
        while value >= modulus:
            value = _take_int(bits, field_size)
        constants.append(value)

    # Candidates are reduced, not rejected; all 2t must be distinct.
    while True:
        candidates = [_take_int(bits, field_size) % modulus for _ in range(2 * t)]
        if len(set(candidates)) != len(candidates):
            continue
        xs, ys = candidates[:t], candidates[t:]
        if any((x + y) % modulus == 0 for x in xs for y in ys):
            continue
        mds = tuple(
            tuple(pow(x + y, -1, modulus) for y in ys)
            for x in xs
        )
        break

    return PoseidonParams(
        t=t,
        full_rounds=FULL_ROUNDS,
        partial_rounds=partial_rounds,
        round_constants=tuple(constants),
        mds=mds,
        modulus=modulus,
    )


_params_cache: dict[tuple[int, int], PoseidonParams] = {}
_params_lock = threading.Lock()


def get_params(t: int, modulus: int = BN254_PRIME) -> PoseidonParams:
    """Constants for width t, generated once per process."""
    key = (t, modulus)
    with _params_lock:
        params = _params_cache.get(key)
        if params is None:
            params = generate_params(t, modulus)
            _params_cache[key] = params
        return params


def permute(params: PoseidonParams, state: Sequence[int]) -> list[int]:
    """Apply the full Poseidon permutation to a width-t state."""
    t = params.t
    p = params.modulus
    if len(state) != t:
        raise ValueError(f"State must have {t} elements, got {len(state)}")

    half_full = params.full_rounds // 2
    rounds = params.full_rounds + params.partial_rounds
    constants = params.round_constants
    mds = params.mds

    state = list(state)
    for r in range(rounds):
        offset = r * t
        state = [(state[i] + constants[offset + i]) % p for i in range(t)]
        if r < half_full or r >= half_full + params.partial_rounds:
            state = [pow(x, ALPHA, p) for x in state]
        else:
            state[0] = pow(state[0], ALPHA, p)
        state = [sum(row[j] * state[j] for j in range(t)) % p for row in mds]
    return state


def poseidon(inputs: Sequence[int], modulus: int = BN254_PRIME) -> int:
    """circomlib poseidon(inputs): permutation of [0, *inputs], lane 0."""
    params = get_params(len(inputs) + 1, modulus)
    return permute(params, [0, *inputs])[0]


__all__ = [
    "PoseidonParams",
    "generate_params",
    "get_params",
    "permute",
    "poseidon",
]
