"""
Runtime settings read from the process environment, and debug tracing.
"""
import os
import sys
from dataclasses import dataclass
from typing import Optional


@dataclass
class Settings:
    debug: bool = False
    seed: Optional[int] = None

    @classmethod
    def from_env(cls, environ=None) -> 'Settings':
        env = os.environ if environ is None else environ
        seed_text = env.get("PARSLEY_SEED")
        seed = None
        if seed_text not in (None, ""):
            try:
                seed = int(seed_text)
            except ValueError:
                raise ValueError(f"PARSLEY_SEED must be an integer, got {seed_text!r}")
        return cls(debug=bool(env.get("PARSLEY_DEBUG")), seed=seed)


def dbg(*parts, force=False):
    """Writes a [DBG] line to stderr when PARSLEY_DEBUG is set or the caller forces it."""
    if force or os.environ.get("PARSLEY_DEBUG"):
        try:
            print("[DBG]", *parts, file=sys.stderr)
        except Exception:
            pass
