"""
Narrative overrides stored in YAML.

A dashboard author can replace the headline, insight or callout of any chart
without touching code. Entries are validated with pydantic; a field left null
keeps the auto-generated text.

File layout:
```yaml
narratives:
  timeline:
    headline: "Household contacts, 2015-2022"
  choropleth:
    callout: "Click a country to zoom"
```
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from src.dashboard.base import NARRATIVE_PARTS, ChartNarrative
from src.dashboard.sections import CHART_IDS
from src.data.schemas import BaseSchema

logger = logging.getLogger(__name__)

OverrideMap = dict[str, dict[str, str | None]]

_FILE_HEADER = """\
# Dashboard narrative overrides
# A value replaces the generated text; null keeps it.
# Charts: {charts}

"""


class NarrativeOverride(BaseSchema):
    """Override fields for one chart."""

    headline: str | None = None
    insight: str | None = None
    callout: str | None = None


# =============================================================================
# READING
# =============================================================================


def parse_overrides(data: Any, source: str = "<memory>") -> OverrideMap:
    """Validate the parsed YAML document and keep the usable chart entries.

    Entries that are not mappings, or that carry unknown keys or non-text
    values, are logged and dropped.
    """
    if data is None:
        return {}
    if not isinstance(data, dict) or not isinstance(data.get("narratives") or {}, dict):
        logger.warning(f"{source}: expected a 'narratives' mapping, ignoring file")
        return {}

    parsed: OverrideMap = {}
    for chart_id, entry in (data.get("narratives") or {}).items():
        if not isinstance(entry, dict):
            logger.warning(f"{source}: entry for {chart_id!r} is not a mapping")
            continue
        try:
            parsed[chart_id] = NarrativeOverride(**entry).model_dump()
        except ValidationError as e:
            logger.warning(f"{source}: invalid entry for {chart_id!r}: {e.error_count()} error(s)")

    return parsed


def load_overrides(path: Path | str) -> OverrideMap:
    """Read overrides from a YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If the YAML is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Override file not found: {path}")

    return parse_overrides(yaml.safe_load(path.read_text(encoding="utf-8")), str(path))


def load_overrides_safe(path: Path | str | None) -> OverrideMap:
    """Like load_overrides, but a missing or unparsable file yields {}."""
    if path is None:
        return {}

    try:
        return load_overrides(path)
    except FileNotFoundError:
        logger.info(f"No override file at {path}, using generated narratives")
    except yaml.YAMLError as e:
        logger.warning(f"Could not parse override file {path}: {e}")
    return {}


# =============================================================================
# APPLYING
# =============================================================================


def apply_overrides(
    narratives: dict[str, ChartNarrative],
    overrides: OverrideMap,
) -> dict[str, ChartNarrative]:
    """Set the override_* fields of each narrative in place and return the dict."""
    stray = sorted(set(overrides) - set(narratives))
    if stray:
        logger.warning(f"Overrides given for charts not on the page: {stray}")

    applied = 0
    for chart_id, values in overrides.items():
        narrative = narratives.get(chart_id)
        if narrative is None:
            continue
        for name in NARRATIVE_PARTS:
            if values.get(name) is not None:
                setattr(narrative, f"override_{name}", values[name])
                applied += 1

    logger.debug(f"Applied {applied} narrative override(s)")
    return narratives


# =============================================================================
# WRITING
# =============================================================================


def _write_override_file(path: Path | str, entries: dict[str, dict[str, Any]]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    body = yaml.safe_dump(
        {"narratives": entries},
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
        width=100,
    )
    path.write_text(_FILE_HEADER.format(charts=", ".join(entries)) + body, encoding="utf-8")
    return path


def export_narratives_to_yaml(
    narratives: dict[str, ChartNarrative],
    path: Path | str,
    include_auto: bool = True,
) -> None:
    """Write the narratives as an override file.

    Args:
        narratives: Narratives keyed by chart id
        path: Destination file
        include_auto: Pre-fill each field with the generated text; otherwise
            every field is null
    """
    entries = {
        chart_id: {
            name: getattr(narrative, f"auto_{name}") if include_auto else None
            for name in NARRATIVE_PARTS
        }
        for chart_id, narrative in narratives.items()
    }
    _write_override_file(path, entries)
    logger.info(f"Exported {len(entries)} narratives to {path}")


def create_template_override_file(path: Path | str) -> None:
    """Write an override file with a null entry for every chart."""
    _write_override_file(path, {chart_id: dict.fromkeys(NARRATIVE_PARTS) for chart_id in CHART_IDS})
    logger.info(f"Created template override file at {path}")
