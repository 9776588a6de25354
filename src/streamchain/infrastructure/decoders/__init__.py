from __future__ import annotations

from .pipelines import Decoder, Pipeline, PrefixDispatch
from .registry import DecoderRegistry, default_decoder_registry, extract_resolution
from .steps import Step

__all__ = [
    "Decoder",
    "DecoderRegistry",
    "Pipeline",
    "PrefixDispatch",
    "Step",
    "default_decoder_registry",
    "extract_resolution",
]
