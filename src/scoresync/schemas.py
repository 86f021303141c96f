"""Pydantic v2 models for raw Web Annotation entries.

Only the fields the join reads are typed strictly; everything else in the
payload is kept but ignored. A bare IRI ``target`` and any ``conformsTo``
shape are accepted, since the acceptance predicate reads only the body.
Separate from scoresync.models (dataclasses).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from scoresync.constants import FRAGMENT_SELECTOR


class Selector(BaseModel):
    """A selector as found under ``body`` or ``target``."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: str | None = None
    value: str = ""
    conforms_to: Any = Field(default=None, alias="conformsTo")


class Resource(BaseModel):
    """A specific resource: a ``source`` narrowed by a ``selector``."""

    model_config = ConfigDict(extra="allow")

    source: str | None = None
    selector: Selector | None = None


class RawAnnotation(BaseModel):
    """One entry of an annotation collection."""

    model_config = ConfigDict(extra="allow")

    id: Any = None
    body: Resource | None = None
    target: Resource | str | None = None

    @property
    def is_fragment(self) -> bool:
        """True when the body points at a source through a FragmentSelector."""
        return bool(
            self.body is not None
            and self.body.source
            and self.body.selector is not None
            and self.body.selector.type == FRAGMENT_SELECTOR
        )

    @property
    def target_value(self) -> str | None:
        """Note id carried by a target selector; None for a bare IRI target."""
        if not isinstance(self.target, Resource) or self.target.selector is None:
            return None
        return self.target.selector.value or None


def parse_annotation(entry: Any) -> RawAnnotation | None:
    """Validate a raw entry, returning None for anything that is not an annotation."""
    if not isinstance(entry, dict):
        return None
    try:
        return RawAnnotation.model_validate(entry)
    except ValidationError:
        return None
