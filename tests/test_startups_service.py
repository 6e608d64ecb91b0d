from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from dealtracker.errors import Conflict
from dealtracker.schemas import StartupCreate
from dealtracker.services.startups import create_startup, get_startup


@pytest.mark.asyncio
async def test_create_with_existing_id_is_a_conflict(session):
    await create_startup(session, StartupCreate(id="s1", name="PayFlow"))

    with pytest.raises(Conflict):
        await create_startup(session, StartupCreate(id="s1", name="Other"))

    assert (await get_startup(session, "s1")).name == "PayFlow"


@pytest.mark.asyncio
async def test_other_integrity_errors_are_not_reported_as_conflicts(session, monkeypatch):
    async def failing_flush(*args, **kwargs):
        raise IntegrityError(
            "INSERT INTO startups ...", {}, Exception("NOT NULL constraint failed: startups.name")
        )

    monkeypatch.setattr(session, "flush", failing_flush)

    with pytest.raises(IntegrityError):
        await create_startup(session, StartupCreate(id="s2", name="Broken"))


@pytest.mark.asyncio
async def test_create_stores_research_sections(session):
    payload = StartupCreate.model_validate({
        "id": "s3",
        "name": "MediScan",
        "marketInfo": {"industry": "Imaging"},
        "investmentDecision": {"reasonsNotToInvest": ["Valuation"]},
    })

    startup = await create_startup(session, payload)

    assert startup.market_info == {"industry": "Imaging"}
    assert startup.investment_decision == {"reasonsNotToInvest": ["Valuation"]}
    assert startup.sales_info is None
