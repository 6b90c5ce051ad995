"""
Non-cryptographic 32-bit hash functions over bytes.

All functions take (data, seed) and return an unsigned int in [0, 2**32).
None of them is suitable for passwords, integrity checks or adversarial input;
use hashlib/hmac or a vetted crypto library for those.
"""

import hashlib
import zlib


MASK_32 = 0xFFFFFFFF

_C1 = 0xCC9E2D51
_C2 = 0x1B873593

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193


def _rotl32(x, r):
    return ((x << r) | (x >> (32 - r))) & MASK_32


def murmur3_32(data, seed=0):
    """MurmurHash3 (x86, 32-bit)"""
    length = len(data)
    h = seed & MASK_32
    nblocks = length // 4

    for block in range(nblocks):
        k = int.from_bytes(data[block * 4:block * 4 + 4], 'little')
        k = (k * _C1) & MASK_32
        k = _rotl32(k, 15)
        k = (k * _C2) & MASK_32

        h ^= k
        h = _rotl32(h, 13)
        h = (h * 5 + 0xE6546B64) & MASK_32

    # Tail
    tail = data[nblocks * 4:]
    k = 0
    if len(tail) == 3:
        k ^= tail[2] << 16
    if len(tail) >= 2:
        k ^= tail[1] << 8
    if len(tail) >= 1:
        k ^= tail[0]
        k = (k * _C1) & MASK_32
        k = _rotl32(k, 15)
        k = (k * _C2) & MASK_32
        h ^= k

    # Finalization mix
    h ^= length & MASK_32
    h ^= h >> 16
    h = (h * 0x85EBCA6B) & MASK_32
    h ^= h >> 13
    h = (h * 0xC2B2AE35) & MASK_32
    h ^= h >> 16

    return h


def fnv1a_32(data, seed=0):
    """FNV-1a (32-bit); a non-zero seed is XORed into the offset basis"""
    h = FNV_OFFSET_BASIS ^ (seed & MASK_32)
    for byte in data:
        h ^= byte
        h = (h * FNV_PRIME) & MASK_32
    return h


def crc32(data, seed=0):
    """CRC-32 via zlib, using the seed as the running value"""
    return zlib.crc32(data, seed & MASK_32) & MASK_32


def md5_32(data, seed=0):
    """First 4 bytes of the MD5 digest, big-endian"""
    digest = hashlib.md5(usedforsecurity=False)
    if seed:
        digest.update((seed & MASK_32).to_bytes(4, 'big'))
    digest.update(data)
    return int.from_bytes(digest.digest()[:4], 'big')


HASH_FUNCTIONS = {
    'murmur3': murmur3_32,
    'fnv1a': fnv1a_32,
    'crc32': crc32,
    'md5': md5_32,
}


def get_hash_function(name):
    """Look up a hash function by name.

    Raises:
        ValueError: if the name is not registered
    """
    try:
        return HASH_FUNCTIONS[name]
    except KeyError:
        known = ', '.join(sorted(HASH_FUNCTIONS))
        raise ValueError(f"Unknown hash algorithm {name!r} (known: {known})") from None
