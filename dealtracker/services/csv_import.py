"""
CSV -> startups import with a user-supplied column mapping.

The mapping is ``{field: csv column}``; unknown fields are ignored. Rows
without a name are dropped. Ids default to the md5 of the name so that
re-importing the same sheet skips rows that are already stored.
"""

from __future__ import annotations

import hashlib
import io
import logging
import re

import pandas as pd
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from dealtracker.errors import ValidationError
from dealtracker.schemas import StartupCreate
from dealtracker.services.startups import bulk_create_startups

logger = logging.getLogger(__name__)

TEXT_FIELDS = [
    "name",
    "sector",
    "stage",
    "country",
    "description",
    "team",
    "metrics",
]
COMPANY_INFO_FIELDS = {
    "website": "website",
    "founders": "founders",
    "founded": "founded",
    "headquarters": "headquarters",
    "linkedin": "linkedin",
}
SUPPORTED_FIELDS = set(TEXT_FIELDS) | set(COMPANY_INFO_FIELDS) | {"id", "score", "pipelineStage"}

_NUMERIC_NOISE = re.compile(r"[%,$\s]")


def parse_score(raw: str) -> float:
    cleaned = _NUMERIC_NOISE.sub("", raw or "")
    if not cleaned:
        return 0.0
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def startup_id_for(name: str) -> str:
    return hashlib.md5(name.encode("utf-8")).hexdigest()


def read_frame(csv_text: str) -> pd.DataFrame:
    try:
        frame = pd.read_csv(io.StringIO(csv_text), dtype=str, keep_default_na=False)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise ValidationError(f"Could not parse CSV: {e}") from e
    frame.columns = [str(c).strip() for c in frame.columns]
    if frame.empty:
        raise ValidationError("CSV must contain headers and at least one data row")
    return frame


def parse_startups(csv_text: str, mapping: dict[str, str]) -> list[StartupCreate]:
    frame = read_frame(csv_text)

    columns = {
        field: column.strip()
        for field, column in mapping.items()
        if field in SUPPORTED_FIELDS and column and column.strip() in frame.columns
    }
    if "name" not in columns:
        raise ValidationError(
            "Mapping must include a 'name' column present in the CSV",
            fields={"mapping.name": "missing or not found in CSV headers"},
        )

    startups = []
    for idx, row in frame.iterrows():
        values = {field: str(row[column]).strip() for field, column in columns.items()}
        name = values.get("name", "")
        if not name:
            continue

        company_info = {
            key: values[field]
            for field, key in COMPANY_INFO_FIELDS.items()
            if values.get(field)
        }
        try:
            startup = StartupCreate(
                id=values.get("id") or startup_id_for(name),
                score=parse_score(values.get("score", "")),
                pipeline_stage=values.get("pipelineStage") or "Deal Flow",
                company_info=company_info or None,
                **{field: values.get(field, "") for field in TEXT_FIELDS},
            )
        except PydanticValidationError as e:
            # +2: header line plus 1-based numbering
            raise ValidationError(f"Invalid row {idx + 2}: {e.errors()[0]['msg']}") from e
        startups.append(startup)

    logger.info("Parsed %d startups from %d CSV rows", len(startups), len(frame))
    return startups


async def import_csv(session: AsyncSession, csv_text: str, mapping: dict[str, str]) -> dict:
    startups = parse_startups(csv_text, mapping)
    inserted = await bulk_create_startups(session, startups)
    return {
        "message": f"Successfully uploaded {inserted} startups",
        "total": len(startups),
        "inserted": inserted,
        "skipped": len(startups) - inserted,
    }
