from __future__ import annotations

from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from streamchain.domain.entities import (
    ExtractionKind,
    ExtractionRule,
    HeaderPolicy,
    HopSpec,
    ProviderSpec,
)
from streamchain.domain.exceptions import ProviderConfigError
from streamchain.infrastructure.providers.schema import (
    ExtractionModel,
    ProviderModel,
    ProvidersFile,
)

log = structlog.get_logger(__name__)


def _to_rule(model: ExtractionModel) -> ExtractionRule:
    return ExtractionRule(
        kind=ExtractionKind(model.kind),
        selector=model.selector or "",
        attribute=model.attribute or "",
        pattern=model.pattern or "",
        group=model.group,
        min_length=model.min_length,
    )


def to_provider_spec(model: ProviderModel) -> ProviderSpec:
    """Convert a validated YAML provider into the domain entity."""
    return ProviderSpec(
        id=model.id,
        hops=tuple(
            HopSpec(
                url_template=hop.url,
                tv_url_template=hop.tv_url,
                extract=_to_rule(hop.extract),
            )
            for hop in model.hops
        ),
        decoder_id=model.decoder,
        headers=HeaderPolicy(**model.headers.model_dump()),
        tokens={token: tuple(domains) for token, domains in model.tokens.items()},
        manifest_signatures=tuple(model.manifest_signatures),
    )


def load_providers_file(path: Path) -> list[ProviderSpec]:
    """Load and validate a providers YAML file."""
    try:
        raw = path.read_text(encoding="utf-8")
        data = yaml.safe_load(raw)
        if data is None:
            return []
        if not isinstance(data, dict):
            raise ProviderConfigError("providers YAML root must be a mapping")
        parsed = ProvidersFile.model_validate(data)
    except (OSError, UnicodeDecodeError) as e:
        log.error(
            "providers_file_load_failed",
            providers_file=str(path),
            error_type=type(e).__name__,
            error_message=str(e),
        )
        raise ProviderConfigError(str(e)) from e
    except ValidationError as e:
        log.error(
            "providers_file_validation_failed",
            providers_file=str(path),
            error_type="ValidationError",
            error_details=e.errors(),
        )
        raise ProviderConfigError(str(e)) from e
    except yaml.YAMLError as e:
        log.error(
            "providers_file_validation_failed",
            providers_file=str(path),
            error_type=type(e).__name__,
            error_message=str(e),
        )
        raise ProviderConfigError(str(e)) from e

    specs = [to_provider_spec(model) for model in parsed.providers]
    log.info("providers_file_loaded", providers_file=str(path), count=len(specs))
    return specs
