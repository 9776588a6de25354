"""Tagged decoder variants.

``Pipeline`` runs a fixed sequence of steps.  ``PrefixDispatch`` picks
exactly one pipeline by the payload prefix.  Both expose
``run(raw) -> (text, variant_id)``; the variant id names the pipeline
that actually produced the text and ends up on the diagnostic trail.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import structlog

from streamchain.infrastructure.decoders.steps import Step

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Pipeline:
    decoder_id: str
    steps: tuple[Step, ...]

    def run(self, raw: str) -> tuple[str, str]:
        value: str | bytes = raw
        for step in self.steps:
            value = step(value)
        if not isinstance(value, str):
            raise TypeError(f"pipeline {self.decoder_id} must end with text")
        return value, self.decoder_id


@dataclass(frozen=True)
class PrefixDispatch:
    """Select a branch by payload prefix; first match in declaration order wins."""

    decoder_id: str
    branches: tuple[tuple[str, Pipeline], ...]
    default: Pipeline | None = None

    def select(self, raw: str) -> Pipeline:
        for prefix, pipeline in self.branches:
            if raw.startswith(prefix):
                return pipeline
        if self.default is None:
            raise ValueError(f"no branch of {self.decoder_id} matches payload prefix")
        return self.default

    def run(self, raw: str) -> tuple[str, str]:
        pipeline = self.select(raw)
        log.debug("decoder_branch_selected", decoder=self.decoder_id, branch=pipeline.decoder_id)
        return pipeline.run(raw)


Decoder = Union[Pipeline, PrefixDispatch]
