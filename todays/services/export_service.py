"""Manual snapshot export and import."""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import ValidationError

from todays.config import EXPORT_VERSION
from todays.errors import MalformedImport
from todays.models.settings import Settings
from todays.models.snapshot import COLLECTIONS, Snapshot
from todays.models.task import utc_now

logger = logging.getLogger(__name__)


def export_snapshot(snapshot: Snapshot, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Wrap the full snapshot as ``{version, exportedAt, data}``."""
    return {
        "version": EXPORT_VERSION,
        "exportedAt": (now or utc_now()).isoformat(),
        "data": snapshot.to_document(),
    }


def parse_import(payload: Any, current_settings: Settings) -> Snapshot:
    """
    Validate an export envelope and build the snapshot it describes.

    The four collections are replaced wholesale. Imported settings are merged
    over the current ones; missing categories fall back to the defaults and
    ``lastDayReset`` never moves backwards.

    Raises:
        MalformedImport: required fields are missing or records are invalid
    """
    if not isinstance(payload, dict):
        raise MalformedImport("Import file must contain a JSON object")

    data = payload.get("data")
    if not isinstance(data, dict):
        raise MalformedImport("Import file has no 'data' object")

    missing = [name for name in COLLECTIONS if not isinstance(data.get(name), list)]
    if missing:
        raise MalformedImport(
            f"Import data is missing: {', '.join(missing)}",
            {"missing": missing},
        )

    imported_settings = data.get("settings") or {}
    if not isinstance(imported_settings, dict):
        raise MalformedImport("Import settings must be an object")

    settings = current_settings.model_dump(mode="json", by_alias=True)
    settings.update(imported_settings)
    if imported_settings.get("categories") is None:
        settings["categories"] = None

    document = {name: data[name] for name in COLLECTIONS}
    document["settings"] = settings

    try:
        snapshot = Snapshot.from_document(document)
    except ValidationError as e:
        raise MalformedImport(
            f"Import data is invalid: {e.error_count()} error(s)",
            {"errors": e.errors(include_url=False, include_context=False)},
        ) from e

    current_reset = current_settings.last_day_reset
    imported_reset = snapshot.settings.last_day_reset
    if current_reset is not None and (imported_reset is None or imported_reset < current_reset):
        snapshot = snapshot.model_copy(update={
            "settings": snapshot.settings.model_copy(update={"last_day_reset": current_reset})
        })

    if "version" in payload and payload["version"] != EXPORT_VERSION:
        logger.warning(f"Importing export version {payload['version']} (current {EXPORT_VERSION})")

    return snapshot
