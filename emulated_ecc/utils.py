# emulated_ecc/utils.py
"""Limb and chunk helpers shared by the gates and chips."""
from __future__ import annotations


def decompose_bn(v: int, chunk_bits: int, chunks: int) -> list[tuple[int, int]]:
    """
    Split `v` into `chunks` little-endian chunks of `chunk_bits` bits.

    Returns (chunk, coeff) pairs with coeff = 2^(i * chunk_bits), so that
    sum(chunk * coeff) == v whenever v < 2^(chunks * chunk_bits).
    """
    mask = (1 << chunk_bits) - 1
    return [((v >> (i * chunk_bits)) & mask, 1 << (i * chunk_bits)) for i in range(chunks)]


def bn_to_limbs_le(bn: int, limb_width: int, limbs: int) -> list[int]:
    """Little-endian limbs; the leading limb keeps every bit above the others."""
    mask = (1 << limb_width) - 1
    ret = []
    for _ in range(limbs - 1):
        ret.append(bn & mask)
        bn >>= limb_width
    ret.append(bn)
    return ret


def limbs_to_bn(limbs_le: list[int], limb_width: int) -> int:
    acc = 0
    for limb in reversed(limbs_le):
        acc = (acc << limb_width) + limb
    return acc


def ceil_div(a: int, b: int) -> int:
    return -(-a // b)
