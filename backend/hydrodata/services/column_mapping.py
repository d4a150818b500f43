"""Canonical field tables and heuristic column mapping.

Each dataset kind has a fixed list of canonical fields. For every field a
tuple of match rules is evaluated against lowercased source column names; the
first column (in file order) matching any rule is proposed. Proposals are
advisory and are edited through :func:`override_mapping` before
:func:`accept_mapping` freezes them.
"""
import logging
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from hydrodata.models.schemas import FieldSpec, UploadedFile


logger = logging.getLogger(__name__)

Rule = Callable[[str], bool]


def equals(*names: str) -> Rule:
    return lambda column: column in names


def contains(fragment: str) -> Rule:
    return lambda column: fragment in column


def contains_all(*fragments: str) -> Rule:
    return lambda column: all(f in column for f in fragments)


FIELD_SCHEMAS: Dict[str, List[FieldSpec]] = {
    # region name is typed by the operator, nothing to map
    "region": [],
    "aquifer": [
        FieldSpec(key="aquifer_id", label="Aquifer ID", required=True),
        FieldSpec(key="aquifer_name", label="Aquifer Name", required=True),
    ],
    "wells": [
        FieldSpec(key="well_id", label="Well ID", required=True),
        FieldSpec(key="lat", label="Latitude", required=True),
        FieldSpec(key="long", label="Longitude", required=True),
        FieldSpec(key="aquifer_id", label="Aquifer ID", required=False),
    ],
    "measurements": [
        FieldSpec(key="well_id", label="Well ID", required=True),
        FieldSpec(key="date", label="Date", required=True),
        FieldSpec(key="wte", label="Water Table Elevation", required=True),
        FieldSpec(key="aquifer_id", label="Aquifer ID", required=False),
    ],
}

_AQUIFER_ID_RULES: Tuple[Rule, ...] = (contains_all("aquifer", "id"), equals("aquifer_id"))
_WELL_ID_RULES: Tuple[Rule, ...] = (contains_all("well", "id"), equals("well_id"))

MATCH_RULES: Dict[str, Dict[str, Tuple[Rule, ...]]] = {
    "region": {},
    "aquifer": {
        "aquifer_id": _AQUIFER_ID_RULES + (equals("id"),),
        "aquifer_name": (
            contains_all("aquifer", "name"),
            equals("aquifer_name", "name", "full_name"),
        ),
    },
    "wells": {
        "well_id": _WELL_ID_RULES,
        "lat": (equals("lat"), contains("latitude"), equals("lat_dec")),
        "long": (equals("long", "lng"), contains("longitude"), equals("long_dec")),
        "aquifer_id": _AQUIFER_ID_RULES,
    },
    "measurements": {
        "well_id": _WELL_ID_RULES,
        "date": (equals("date"), contains("date")),
        "wte": (equals("wte"), contains("elevation"), contains("level")),
        "aquifer_id": _AQUIFER_ID_RULES,
    },
}


def _check_kind(kind: str) -> None:
    if kind not in FIELD_SCHEMAS:
        raise ValueError(f"Unknown dataset kind: {kind}")


def field_specs(kind: str) -> List[FieldSpec]:
    _check_kind(kind)
    return list(FIELD_SCHEMAS[kind])


def required_fields(kind: str) -> List[FieldSpec]:
    return [spec for spec in field_specs(kind) if spec.required]


def match_column(columns: Iterable[str], rules: Tuple[Rule, ...]) -> Optional[str]:
    for column in columns:
        lowered = column.lower()
        if any(rule(lowered) for rule in rules):
            return column
    return None


def infer_mapping(columns: List[str], kind: str) -> Dict[str, str]:
    """Propose ``{canonical field: source column}`` for the given kind."""
    _check_kind(kind)
    mapping: Dict[str, str] = {}
    for spec in FIELD_SCHEMAS[kind]:
        column = match_column(columns, MATCH_RULES[kind].get(spec.key, ()))
        if column is not None:
            mapping[spec.key] = column
    logger.debug("Inferred %s mapping %s from %d columns", kind, mapping, len(columns))
    return mapping


def missing_required(upload: UploadedFile) -> List[FieldSpec]:
    return [spec for spec in required_fields(upload.kind) if not upload.mapping.get(spec.key)]


def override_mapping(upload: UploadedFile, changes: Dict[str, str]) -> UploadedFile:
    """New proposed snapshot with ``changes`` applied; ``""`` clears a field."""
    known = {spec.key for spec in field_specs(upload.kind)}
    mapping = dict(upload.mapping)
    for target, source in changes.items():
        if target not in known:
            raise ValueError(f"{upload.kind}: unknown field {target}")
        if not source:
            mapping.pop(target, None)
            continue
        if source not in upload.columns:
            raise ValueError(f"{upload.kind}: column {source} not found in {upload.name}")
        mapping[target] = source
    return upload.model_copy(update={"mapping": mapping, "mapping_state": "proposed"})


def accept_mapping(upload: UploadedFile) -> UploadedFile:
    return upload.model_copy(update={"mapping": dict(upload.mapping), "mapping_state": "accepted"})
