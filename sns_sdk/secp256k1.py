"""
secp256k1 public key recovery.

Affine point arithmetic over the curve y^2 = x^3 + 7 with modular square
roots by Tonelli-Shanks. Points are ``(x, y)`` tuples and ``None`` is the
point at infinity.
"""

from typing import Optional, Tuple

P = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
A = 0
B = 7
G = (
    0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798,
    0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8,
)

Point = Optional[Tuple[int, int]]


def mod_inverse(value: int, modulus: int) -> int:
    if value % modulus == 0:
        raise ZeroDivisionError("value has no inverse")
    return pow(value, -1, modulus)


def mod_sqrt(value: int, modulus: int) -> Optional[int]:
    """Tonelli-Shanks. Returns a root of ``value`` mod the odd prime ``modulus``, or None."""
    value %= modulus
    if value == 0:
        return 0
    if pow(value, (modulus - 1) // 2, modulus) != 1:
        return None

    # modulus - 1 = q * 2^s with q odd
    q, s = modulus - 1, 0
    while q % 2 == 0:
        q //= 2
        s += 1

    z = 2
    while pow(z, (modulus - 1) // 2, modulus) != modulus - 1:
        z += 1

    m = s
    c = pow(z, q, modulus)
    t = pow(value, q, modulus)
    r = pow(value, (q + 1) // 2, modulus)
    while t != 1:
        i, t2 = 0, t
        while t2 != 1:
            t2 = t2 * t2 % modulus
            i += 1
        b = pow(c, 1 << (m - i - 1), modulus)
        m = i
        c = b * b % modulus
        t = t * c % modulus
        r = r * b % modulus
    return r


def is_on_curve(point: Point) -> bool:
    if point is None:
        return True
    x, y = point
    return (y * y - x * x * x - A * x - B) % P == 0


def point_add(p1: Point, p2: Point) -> Point:
    if p1 is None:
        return p2
    if p2 is None:
        return p1
    x1, y1 = p1
    x2, y2 = p2
    if x1 == x2:
        if (y1 + y2) % P == 0:
            return None
        return point_double(p1)
    slope = (y2 - y1) * mod_inverse(x2 - x1, P) % P
    x3 = (slope * slope - x1 - x2) % P
    return x3, (slope * (x1 - x3) - y1) % P


def point_double(point: Point) -> Point:
    if point is None:
        return None
    x, y = point
    if y == 0:
        return None
    slope = (3 * x * x + A) * mod_inverse(2 * y, P) % P
    x3 = (slope * slope - 2 * x) % P
    return x3, (slope * (x - x3) - y) % P


def point_negate(point: Point) -> Point:
    if point is None:
        return None
    x, y = point
    return x, (-y) % P


def point_multiply(scalar: int, point: Point) -> Point:
    result: Point = None
    addend = point
    scalar %= N
    while scalar:
        if scalar & 1:
            result = point_add(result, addend)
        addend = point_double(addend)
        scalar >>= 1
    return result


def recover_public_key(msg_hash: bytes, r: int, s: int, recovery_id: int) -> Optional[bytes]:
    """
    Recover the 64-byte uncompressed public key (x | y) that produced
    signature ``(r, s)`` over ``msg_hash``, or None if no key exists.

    Q = r^-1 (sR - eG), where R is the curve point with x = r and the
    y parity given by ``recovery_id``.
    """
    if not (0 < r < N and 0 < s < N) or recovery_id not in (0, 1, 2, 3):
        return None

    x = r + N if recovery_id >= 2 else r
    if x >= P:
        return None
    y = mod_sqrt(x * x * x + A * x + B, P)
    if y is None:
        return None
    if y % 2 != recovery_id % 2:
        y = P - y
    big_r = (x, y)

    e = int.from_bytes(msg_hash, "big") % N
    r_inv = mod_inverse(r, N)
    s_r = point_multiply(s, big_r)
    e_g = point_negate(point_multiply(e, G))
    q = point_multiply(r_inv, point_add(s_r, e_g))
    if q is None or not is_on_curve(q):
        return None
    return q[0].to_bytes(32, "big") + q[1].to_bytes(32, "big")
