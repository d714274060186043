"""
Hive sensor readings, parsed from the CSV blobs each hive uploads.

Rows keep their CSV columns. Sensor columns are coerced to numbers and
every row gets an ISO ``timestamp``: the first parseable timestamp-like
column, otherwise the blob's last-modified time.
"""
import io
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from smarthive.core.errors import ValidationError
from smarthive.core.utils import utcnow
from smarthive.schemas.sensor_data import BlobInfo
from smarthive.services.blob_storage import BlobStorage, azure_errors

logger = logging.getLogger(__name__)

TIMESTAMP_FIELDS = (
    "timestamp", "Timestamp", "datetime", "DateTime", "time", "Time", "Date", "date",
    "created_at", "createdAt", "recorded_at", "recordedAt", "measured_at", "measuredAt",
)

NUMERIC_FIELDS = (
    "value", "temperature", "pressure", "humidity",
    "temp_internal", "temp_external", "temperature_internal", "temperature_external",
    "tempInternal", "tempExternal", "inte_temp", "exte_temp", "int_temp", "ext_temp",
    "hum_internal", "hum_external", "humidity_internal", "humidity_external",
    "humInternal", "humExternal", "inte_hum", "exte_hum", "int_hum", "ext_hum",
    "weight", "Weight", "weight_kg",
    "battery", "Battery", "battery_level",
    "lat", "latitude", "lon", "longitude",
)


def to_utc(value: Any) -> Optional[pd.Timestamp]:
    """Parse a timestamp, treating naive values as UTC. None when unparseable."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError):
        return None
    if pd.isna(ts):
        return None
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")


def iso(value: Any) -> Optional[str]:
    ts = to_utc(value)
    return ts.isoformat() if ts is not None else None


def parse_csv(text: str) -> List[Dict[str, Any]]:
    """CSV text to a list of row dicts, NaN cells as None."""
    df = pd.read_csv(io.StringIO(text), dtype=str, skipinitialspace=True)
    df.columns = [str(c).strip() for c in df.columns]
    df = df.dropna(how="all")

    for column in NUMERIC_FIELDS:
        if column in df.columns:
            df[column] = pd.to_numeric(df[column], errors="coerce")

    df = df.astype(object).where(df.notna(), None)
    return df.to_dict(orient="records")


def stamp_row(row: Dict[str, Any], blob: BlobInfo) -> Tuple[str, bool]:
    """Resolve a row's timestamp; the flag says whether it came from the CSV."""
    for field in TIMESTAMP_FIELDS:
        if row.get(field) is not None:
            parsed = iso(row[field])
            if parsed is not None:
                return parsed, True
            break
    return iso(blob.last_modified) or utcnow().isoformat(), False


def require_container(container_id: Optional[str]) -> str:
    if not container_id or not container_id.strip():
        raise ValidationError("containerId parameter is required")
    return container_id.strip()


async def latest_readings(storage: BlobStorage, container_id: Optional[str], count: int = 1) -> Dict[str, Any]:
    """Rows from the ``count`` newest blobs of a container, grouped per blob."""
    container_id = require_container(container_id)
    generated_at = iso(utcnow())

    with azure_errors("Failed to fetch latest data"):
        blobs = await storage.list_blobs(container_id)
        if not blobs:
            return {
                "data": [],
                "message": f"No blobs found in container: {container_id}",
                "containerId": container_id,
                "timestamp": generated_at,
            }

        latest = [b for b in blobs if b.last_modified is not None][:count]
        results = []
        for blob in latest:
            try:
                rows = parse_csv(await storage.download_text(container_id, blob.name))
            except ValueError as e:
                logger.warning(f"Skipping unreadable blob {container_id}/{blob.name}: {e}")
                continue

            data = []
            for row in rows:
                timestamp, from_csv = stamp_row(row, blob)
                data.append({
                    **row,
                    "timestamp": timestamp,
                    "_metadata": {
                        "lastModified": iso(blob.last_modified),
                        "blobName": blob.name,
                        "containerId": container_id,
                        "hasOriginalTimestamp": from_csv,
                    },
                })
            results.append({"blobInfo": blob.to_json(), "data": data, "recordCount": len(data)})

    logger.info(f"Read {len(results)} of {len(latest)} latest blob(s) from {container_id}")
    return {
        "data": results,
        "containerId": container_id,
        "totalBlobs": len(blobs),
        "timestamp": generated_at,
        "summary": {
            "totalRecords": sum(r["recordCount"] for r in results),
            "latestBlobTimestamp": iso(latest[0].last_modified) if latest else None,
            "oldestBlobTimestamp": iso(latest[-1].last_modified) if latest else None,
        },
    }


async def historical_readings(
    storage: BlobStorage,
    container_id: Optional[str],
    limit: int = 24,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Rows from up to ``limit`` blobs modified within the date range, newest first."""
    container_id = require_container(container_id)
    start, end = to_utc(date_from), to_utc(date_to)

    with azure_errors("Failed to fetch historical data"):
        blobs = await storage.list_blobs(container_id)
        selected = []
        for blob in blobs:
            modified = to_utc(blob.last_modified)
            if start is not None and (modified is None or modified < start):
                continue
            if end is not None and (modified is None or modified > end):
                continue
            selected.append(blob)
        selected = selected[:limit]

        rows: List[Dict[str, Any]] = []
        errors = []
        for blob in selected:
            try:
                parsed = parse_csv(await storage.download_text(container_id, blob.name))
            except ValueError as e:
                logger.warning(f"Failed to process blob {container_id}/{blob.name}: {e}")
                errors.append({"blob": blob.name, "containerId": container_id, "error": str(e)})
                continue

            for row in parsed:
                timestamp, _ = stamp_row(row, blob)
                rows.append({
                    **row,
                    "timestamp": timestamp,
                    "_metadata": {
                        "sourceBlob": blob.name,
                        "containerId": container_id,
                        "lastModified": iso(blob.last_modified),
                        "size": blob.size,
                    },
                })

    rows.sort(key=lambda r: to_utc(r["timestamp"]), reverse=True)
    return {
        "data": rows,
        "containerId": container_id,
        "totalFiles": len(selected),
        "totalRecords": len(rows),
        "processingErrors": errors,
        "metadata": {
            "requestedLimit": limit,
            "actualFiles": len(selected),
            "dateRange": {"from": iso(date_from), "to": iso(date_to)},
            "generatedAt": iso(utcnow()),
        },
    }
