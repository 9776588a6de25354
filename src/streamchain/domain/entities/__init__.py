from .deadline import Deadline
from .provider import (
    DEFAULT_MANIFEST_SIGNATURES,
    ExtractionKind,
    ExtractionRule,
    HeaderPolicy,
    HopSpec,
    ProviderSpec,
)
from .resolution import (
    CandidateURL,
    ContentRef,
    DecodedResolution,
    EncodedPayload,
    HopTrace,
    MediaType,
    PlaceholderUnknownToken,
    ProbeAttempt,
    ProbeOutcome,
    ResolutionResult,
    ResolutionTrail,
    StageTiming,
    Substitution,
)

__all__ = [
    "DEFAULT_MANIFEST_SIGNATURES",
    "CandidateURL",
    "ContentRef",
    "DecodedResolution",
    "Deadline",
    "EncodedPayload",
    "ExtractionKind",
    "ExtractionRule",
    "HeaderPolicy",
    "HopSpec",
    "HopTrace",
    "MediaType",
    "PlaceholderUnknownToken",
    "ProbeAttempt",
    "ProbeOutcome",
    "ProviderSpec",
    "ResolutionResult",
    "ResolutionTrail",
    "StageTiming",
    "Substitution",
]
