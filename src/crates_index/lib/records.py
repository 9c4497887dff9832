"""Line codec for index records.

Each line of a crate file is one compact JSON object::

    {"name":"cc","vers":"1.0.0","deps":[...],"cksum":"<64 hex>",
     "features":{},"yanked":false}

Decoding runs in two steps: ``json.loads`` produces a raw wire mapping in
which any field may be missing, then :func:`version_from_wire` checks the
required fields and applies defaults through :func:`_dependency_defaults`.
"""

from __future__ import annotations

__all__ = [
    "decode_record",
    "dependency_from_wire",
    "dependency_to_wire",
    "encode_record",
    "version_from_wire",
    "version_to_wire",
]

import json
import re
from typing import Any

from crates_index.lib.errors import ChecksumFormatError, DecodeError
from crates_index.lib.models import (
    CHECKSUM_LENGTH,
    Dependency,
    DependencyKind,
    Version,
)
from crates_index.lib.validation import (
    parse_bool,
    parse_object,
    parse_optional_str,
    parse_str,
    parse_str_list,
)

_CHECKSUM_PATTERN = re.compile(rf"[0-9a-fA-F]{{{CHECKSUM_LENGTH * 2}}}")


def _parse_checksum(payload: dict[str, Any]) -> bytes:
    raw = parse_str(payload, key="cksum")
    if not _CHECKSUM_PATTERN.fullmatch(raw):
        msg = (
            f"cksum must be {CHECKSUM_LENGTH * 2} hex digits, "
            f"got {len(raw)} characters: {raw!r}"
        )
        raise ChecksumFormatError(msg)
    return bytes.fromhex(raw)


def _parse_kind(raw: Any) -> DependencyKind:
    if not isinstance(raw, str):
        raise DecodeError("kind must be a string")
    try:
        return DependencyKind(raw)
    except ValueError as exc:
        allowed = ", ".join(kind.value for kind in DependencyKind)
        msg = f"unknown dependency kind {raw!r} (expected {allowed})"
        raise DecodeError(msg) from exc


def _dependency_defaults(payload: dict[str, Any]) -> dict[str, Any]:
    """Fill the fields the wire format may omit.

    ``kind`` defaults to ``normal``; ``package`` and ``target`` default to
    ``None``.  An explicit JSON ``null`` counts as omitted.
    """
    kind = payload.get("kind")
    return {
        "kind": DependencyKind.NORMAL if kind is None else _parse_kind(kind),
        "package": parse_optional_str(payload, key="package"),
        "target": parse_optional_str(payload, key="target"),
    }


def dependency_from_wire(payload: Any) -> Dependency:
    """Validate one entry of a record's ``deps`` array."""
    if not isinstance(payload, dict):
        raise DecodeError("deps entries must be objects")
    return Dependency(
        name=parse_str(payload, key="name"),
        requirement=parse_str(payload, key="req"),
        features=parse_str_list(payload, key="features"),
        optional=parse_bool(payload, key="optional"),
        default_features=parse_bool(payload, key="default_features"),
        **_dependency_defaults(payload),
    )


def version_from_wire(payload: Any) -> Version:
    """Validate a decoded JSON object and build a :class:`Version`.

    Unknown keys are ignored so newer index fields do not break parsing.
    """
    if not isinstance(payload, dict):
        raise DecodeError("record must be a JSON object")
    name = parse_str(payload, key="name")
    vers = parse_str(payload, key="vers")
    if "deps" not in payload:
        raise DecodeError("missing field `deps`")
    raw_deps = payload["deps"]
    if not isinstance(raw_deps, list):
        raise DecodeError("deps must be a list")
    deps = tuple(dependency_from_wire(dep) for dep in raw_deps)
    checksum = _parse_checksum(payload)
    raw_features = parse_object(payload, key="features")
    features = {
        feature: parse_str_list(raw_features, key=feature)
        for feature in raw_features
    }
    yanked = parse_bool(payload, key="yanked")
    return Version(
        name=name,
        version=vers,
        checksum=checksum,
        dependencies=deps,
        features=features,
        yanked=yanked,
    )


def decode_record(line: bytes | str) -> Version:
    """Decode one line (without its newline) into a :class:`Version`.

    Raises:
        DecodeError: On invalid JSON (including integers past the interpreter's
            digit limit and nesting too deep to parse), missing or mistyped
            fields.
        ChecksumFormatError: When ``cksum`` is not 64 hex digits.
    """
    try:
        payload = json.loads(line)
    except (ValueError, RecursionError) as exc:
        raise DecodeError(f"invalid JSON: {exc}") from exc
    return version_from_wire(payload)


def dependency_to_wire(dep: Dependency) -> dict[str, Any]:
    """Serialise a dependency, dropping default ``kind`` and unset ``package``."""
    payload: dict[str, Any] = {
        "name": dep.name,
        "req": dep.requirement,
        "features": list(dep.features),
        "optional": dep.optional,
        "default_features": dep.default_features,
        "target": dep.target,
    }
    if dep.kind is not DependencyKind.NORMAL:
        payload["kind"] = dep.kind.value
    if dep.package is not None:
        payload["package"] = dep.package
    return payload


def version_to_wire(version: Version) -> dict[str, Any]:
    return {
        "name": version.name,
        "vers": version.version,
        "deps": [dependency_to_wire(dep) for dep in version.dependencies],
        "cksum": version.checksum.hex(),
        "features": {key: list(values) for key, values in version.features.items()},
        "yanked": version.yanked,
    }


def encode_record(version: Version) -> str:
    """Encode *version* as one compact JSON line (no trailing newline)."""
    return json.dumps(
        version_to_wire(version), separators=(",", ":"), ensure_ascii=False
    )
