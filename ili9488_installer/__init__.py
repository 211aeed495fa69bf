"""ILI9488 TFT installer for Raspberry Pi (Python-first, state-driven).

Core design goals:
- Idempotent steps, resumable from the state file
- Boot configuration patched in memory and written atomically
- Every external command logged
- Explicit operator confirmation before anything is changed
"""

__all__ = []
