from __future__ import annotations

from .prober import HttpxCandidateProber, read_head

__all__ = ["HttpxCandidateProber", "read_head"]
