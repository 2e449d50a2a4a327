from __future__ import annotations

# 32 symbols: no I, O, 0 or 1 so codes survive being read aloud or retyped.
INVITE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_CODE_CHARS = 8

_MIX = 0x9E3779B97F4A7C15
_MASK = (1 << 64) - 1


def generate_invite_code(timestamp_ns: int, salt: int = 0) -> str:
  """
  Build an `XXXX-XXXX` code from a nanosecond timestamp.

  `salt` (the invite id) separates codes minted within the same clock tick. Codes are not
  checked against existing ones; a collision needs the same mixed seed and is accepted.
  """
  seed = (int(timestamp_ns) ^ ((int(salt) * _MIX) & _MASK)) & _MASK
  base = len(INVITE_ALPHABET)
  chars = []
  for _ in range(INVITE_CODE_CHARS):
    chars.append(INVITE_ALPHABET[seed % base])
    seed //= base
    # refill from the high bits so all 8 chars depend on the whole seed
    seed ^= (seed * _MIX) & _MASK
  raw = "".join(chars)
  return f"{raw[:4]}-{raw[4:]}"


def normalize_invite_code(code: str) -> str:
  return (code or "").strip().upper()
