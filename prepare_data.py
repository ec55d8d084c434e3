import json
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple

from trial_states import Step


class CatalogError(ValueError):
    """Raised when the authored case file cannot be turned into a catalog."""


@dataclass(frozen=True)
class CaseVignette:
    id: str
    case_text: str
    ai_text: str
    ai_confidence: int
    image_url: Optional[str] = None
    image_alt: Optional[str] = None


class CaseCatalog:
    """Fixed, ordered, read-only sequence of vignettes. Its length is N."""

    def __init__(self, vignettes: Sequence[CaseVignette]):
        if not vignettes:
            raise CatalogError("A study needs at least one case vignette")
        self._vignettes: Tuple[CaseVignette, ...] = tuple(vignettes)

    def __len__(self) -> int:
        return len(self._vignettes)

    def __iter__(self) -> Iterator[CaseVignette]:
        return iter(self._vignettes)

    def __getitem__(self, index: int) -> CaseVignette:
        # No negative indexing: trials are addressed from 0 to N-1 only
        if not 0 <= index < len(self._vignettes):
            raise IndexError(f"trial index {index} outside [0, {len(self._vignettes)})")
        return self._vignettes[index]

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(v.id for v in self._vignettes)

    def progress_fraction(self, step: Step, trial_index: int) -> float:
        if step is not Step.TRIAL:
            return 0.0
        return trial_index / len(self._vignettes)


def _parse_vignette(position, entry):
    if not isinstance(entry, dict):
        raise CatalogError(f"Case #{position} is not an object")
    missing = [k for k in ("id", "caseText", "aiText", "aiConfidence") if k not in entry]
    if missing:
        raise CatalogError(f"Case #{position} is missing {', '.join(missing)}")

    confidence = entry["aiConfidence"]
    if isinstance(confidence, bool) or not isinstance(confidence, int) or not 0 <= confidence <= 100:
        raise CatalogError(f"Case '{entry['id']}' has aiConfidence {confidence!r}, expected 0-100")

    return CaseVignette(
        id=str(entry["id"]),
        case_text=str(entry["caseText"]),
        ai_text=str(entry["aiText"]),
        ai_confidence=confidence,
        image_url=entry.get("imageUrl") or None,
        image_alt=entry.get("imageAlt") or None,
    )


def build_case_catalog(entries) -> CaseCatalog:
    vignettes = [_parse_vignette(i, e) for i, e in enumerate(entries)]

    seen = set()
    for v in vignettes:
        if v.id in seen:
            raise CatalogError(f"Duplicate case id '{v.id}'")
        seen.add(v.id)

    return CaseCatalog(vignettes)


def load_case_catalog(path) -> CaseCatalog:
    try:
        with open(path, "r", encoding="utf-8") as f:
            entries = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogError(f"Could not read case file '{path}': {e}") from e

    # Accept either a bare list or {"cases": [...]}
    if isinstance(entries, dict):
        entries = entries.get("cases", [])
    if not isinstance(entries, list):
        raise CatalogError(f"Case file '{path}' must hold a list of cases")

    return build_case_catalog(entries)
