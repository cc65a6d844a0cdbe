"""Image creation time from schema 1 manifest history."""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ValidationError, field_validator

from regserver.errors import ManifestDecodeError
from regserver.registry.models import ManifestV1

_FRACTION = re.compile(r"(\.\d{6})\d+")


class V1Compatibility(BaseModel):
    """Fields of a v1Compatibility blob the server cares about."""

    id: str = ""
    created: Optional[datetime] = None

    @field_validator("created", mode="before")
    @classmethod
    def trim_nanoseconds(cls, v):
        # Docker writes nanosecond precision; datetime stops at microseconds
        if isinstance(v, str):
            return _FRACTION.sub(r"\1", v)
        return v


def decode_first_entry(manifest: ManifestV1) -> Optional[V1Compatibility]:
    """Decode the newest history entry, or None if there is no history.

    Older entries are never looked at; the newest layer's creation time is
    the image's creation time.

    Raises:
        ManifestDecodeError: If the entry is not valid v1 compatibility JSON
    """
    if not manifest.history:
        return None

    try:
        return V1Compatibility.model_validate_json(manifest.history[0].v1Compatibility)
    except ValidationError as e:
        raise ManifestDecodeError(
            f"unmarshal v1 manifest for {manifest.name}:{manifest.tag} failed: {e}"
        ) from e


def extract_created_at(manifest: ManifestV1) -> Optional[datetime]:
    """Creation time of the image, None when unknown."""
    entry = decode_first_entry(manifest)
    return entry.created if entry else None
