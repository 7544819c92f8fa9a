"""Mark a processed pack in its ``pack.mcmeta`` description."""

from __future__ import annotations

import json
import logging
from typing import Optional

from .archive import PACK_METADATA, ResourcePackArchive
from .errors import MetadataPatchWarning

logger = logging.getLogger(__name__)

DALTONIZED_MARKER = " (Daltonized by MC-Suite)"


def patch_pack_metadata(
    archive: ResourcePackArchive, marker: str = DALTONIZED_MARKER
) -> Optional[MetadataPatchWarning]:
    """Append *marker* to ``pack.description``.

    Never raises: a missing or malformed descriptor is logged and returned as
    a :class:`MetadataPatchWarning` so the run can still finish.
    """

    if PACK_METADATA not in archive:
        warning = MetadataPatchWarning(f"{PACK_METADATA} is missing")
        logger.warning("Skipping metadata update: %s", warning)
        return warning

    try:
        document = json.loads(archive.read_text(PACK_METADATA))
        pack = document.get("pack") if isinstance(document, dict) else None
        if isinstance(pack, dict):
            description = pack.get("description") or ""
            if not isinstance(description, str):
                # Text-component descriptions are serialised JSON; keep them readable
                description = json.dumps(description, ensure_ascii=False)
            pack["description"] = description + marker
        archive.write(
            PACK_METADATA,
            json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8"),
        )
    except (ValueError, AttributeError, TypeError) as exc:
        warning = MetadataPatchWarning(f"Failed to update {PACK_METADATA}: {exc}")
        logger.warning("%s", warning)
        return warning

    logger.info("Updated %s description", PACK_METADATA)
    return None
