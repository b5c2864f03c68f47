"""Tests for the synchronous search orchestrator and webset start (provider mocked)."""
import json
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from sqlalchemy import select

import config
from conftest import make_campaign, make_subscription, search_hit
from db.models import Lead, Subscription, WebsetSearch
from db.repositories import credits as credits_repo
from db.repositories import leads as leads_repo
from db.repositories import rate_limits as rate_limits_repo
from db.repositories import suppression as suppression_repo
from pipeline.errors import NoCredits, ProviderError, RateLimited, ValidationFailed
from pipeline.events import LEADS_FOUND
from pipeline.search import SEARCH_ENDPOINT, search_leads, start_webset_search

SEARCH_PEOPLE = "tools.exa_tools.exa_search_people"


def _provider(results):
    return {"results": results, "query": "q"}


def _nurses(n, prefix="nurse"):
    return [search_hit(f"Nurse Number{i}", f"{prefix}-{i}") for i in range(n)]


async def _leads(session, user_id):
    result = await session.execute(select(Lead).where(Lead.user_id == user_id))
    return list(result.scalars().all())


class TestBudget:
    @pytest.mark.asyncio
    async def test_persists_exactly_the_remaining_budget(self, session, user_id, sink):
        await make_subscription(session, user_id, credits_limit=10, credits_used=7)
        with patch(SEARCH_PEOPLE, return_value=_provider(_nurses(20))) as mock_search:
            result = await search_leads(session, user_id, {"query": "ICU nurse"}, sink)

        mock_search.assert_called_once()
        assert result.leads_found == 3
        assert result.leads_skipped == 0
        assert len(await _leads(session, user_id)) == 3
        sub = (await session.execute(select(Subscription))).scalar_one()
        await session.refresh(sub)
        assert sub.credits_used == 10

    @pytest.mark.asyncio
    async def test_no_credits_rejects_before_provider_call(self, session, user_id, sink):
        await make_subscription(session, user_id, credits_limit=10, credits_used=10)
        with patch(SEARCH_PEOPLE) as mock_search:
            with pytest.raises(NoCredits) as exc:
                await search_leads(session, user_id, {"query": "ICU nurse"}, sink)

        assert exc.value.error == "NO_CREDITS"
        assert exc.value.status_code == 402
        mock_search.assert_not_called()
        assert sink.events == []

    @pytest.mark.asyncio
    async def test_user_without_subscription_gets_default_budget(self, session, user_id, sink):
        with patch(SEARCH_PEOPLE, return_value=_provider(_nurses(20))):
            result = await search_leads(session, user_id, {"query": "ICU nurse"}, sink)
        assert result.leads_found == config.DEFAULT_CREDIT_BUDGET
        assert await credits_repo.list_usage(session, user_id) == []


class TestDedup:
    @pytest.mark.asyncio
    async def test_second_search_updates_existing_rows(self, session, user_id, sink):
        await make_subscription(session, user_id, credits_limit=100)
        campaign = await make_campaign(session, user_id)
        payload = {"query": "ICU nurse", "campaignId": str(campaign.id)}

        with patch(SEARCH_PEOPLE, return_value=_provider(_nurses(4))):
            await search_leads(session, user_id, payload, sink)
        first_ids = {lead.id for lead in await leads_repo.list_for_campaign(session, campaign.id)}

        changed = _nurses(4)
        changed[0]["title"] = "Nurse Number0 | Charge Nurse at Ben Taub | LinkedIn"
        with patch(SEARCH_PEOPLE, return_value=_provider(changed)):
            result = await search_leads(session, user_id, payload, sink)

        leads = await leads_repo.list_for_campaign(session, campaign.id)
        assert result.leads_found == 4
        assert {lead.id for lead in leads} == first_ids
        assert await leads_repo.count_for_campaign(session, campaign.id) == 4
        assert any(lead.company == "Ben Taub" for lead in leads)

    @pytest.mark.asyncio
    async def test_without_campaign_every_result_is_inserted(self, session, user_id, sink):
        await make_subscription(session, user_id, credits_limit=100)
        with patch(SEARCH_PEOPLE, return_value=_provider(_nurses(2))):
            await search_leads(session, user_id, {"query": "ICU nurse"}, sink)
            await search_leads(session, user_id, {"query": "ICU nurse"}, sink)
        assert len(await _leads(session, user_id)) == 4

    @pytest.mark.asyncio
    async def test_same_profile_twice_in_one_response_is_one_row_one_credit(self, session, user_id, sink):
        await make_subscription(session, user_id, credits_limit=100)
        campaign = await make_campaign(session, user_id)
        results = [
            search_hit("Ana Ruiz", "ana-ruiz"),
            dict(search_hit("Ana Ruiz", "ana-ruiz"), id="exa-ana-2", url="https://www.linkedin.com/in/ana-ruiz/?trk=x"),
            search_hit("Ben Cho", "ben-cho"),
        ]
        with patch(SEARCH_PEOPLE, return_value=_provider(results)):
            result = await search_leads(
                session, user_id, {"query": "ICU nurse", "campaignId": str(campaign.id)}, sink
            )

        assert (result.leads_found, result.leads_skipped) == (2, 1)
        assert await leads_repo.count_for_campaign(session, campaign.id) == 2
        usage = await credits_repo.list_usage(session, user_id)
        assert [u.credits_used for u in usage] == [2]
        sub = (await session.execute(select(Subscription))).scalar_one()
        await session.refresh(sub)
        assert sub.credits_used == 2


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_valid_and_noise_results(self, session, user_id, sink):
        await make_subscription(session, user_id, credits_limit=100)
        campaign = await make_campaign(session, user_id, name="LA ICU")
        results = [
            search_hit("Ana Ruiz", "ana-ruiz", text="ICU RN based in Los Angeles, CA. BLS, ACLS."),
            search_hit("Ben Cho", "ben-cho", text="Critical care nurse. BLS/ACLS certified."),
            search_hit("Cara Diaz", "cara-diaz", text="ACLS, PALS. Cedars-Sinai."),
            search_hit("Dev Patel", "dev-patel", text="Registered nurse, BLS."),
            search_hit("Eve Stone", "eve-stone-5c3e9f1a", text=""),
            {"id": "x1", "url": "https://www.linkedin.com/jobs/view/3845", "title": "ICU Nurse Jobs", "text": ""},
            {"id": "x2", "url": "https://www.linkedin.com/in/jobs", "title": "ICU Nurse Jobs in Los Angeles | LinkedIn", "text": ""},
        ]
        with patch(SEARCH_PEOPLE, return_value=_provider(results)):
            result = await search_leads(
                session, user_id,
                {"query": "ICU Nurse, Los Angeles, 3+ years, BLS/ACLS", "campaignId": str(campaign.id)},
                sink,
            )

        assert result.success
        assert (result.leads_found, result.leads_skipped) == (5, 2)

        by_name = {lead.name: lead for lead in await leads_repo.list_for_campaign(session, campaign.id)}
        assert by_name["Ana Ruiz"].profile_data["certifications"] == "BLS, ACLS"
        assert by_name["Ana Ruiz"].location == "Los Angeles, CA"
        assert by_name["Ana Ruiz"].industry == "ICU"
        assert by_name["Ben Cho"].profile_data["certifications"] == "BLS, ACLS"
        assert by_name["Cara Diaz"].profile_data["certifications"] == "ACLS, PALS"
        assert by_name["Dev Patel"].profile_data["certifications"] == "BLS"
        assert "certifications" not in by_name["Eve Stone"].profile_data
        assert by_name["Eve Stone"].profile_data["source"] == "exa_search"
        assert by_name["Eve Stone"].profile_data["exa_id"] == "exa-eve-stone-5c3e9f1a"

        await session.refresh(campaign)
        assert campaign.status == "active"
        assert campaign.lead_count == 5
        usage = await credits_repo.list_usage(session, user_id)
        assert [u.description for u in usage] == ["5 leads discovered via Exa search"]
        assert sink.events[0] == (LEADS_FOUND, str(user_id), {"lead_count": 5, "campaign_name": "LA ICU"})

    @pytest.mark.asyncio
    async def test_search_with_nothing_saved_leaves_campaign_draft(self, session, user_id, sink):
        await make_subscription(session, user_id, credits_limit=100)
        campaign = await make_campaign(session, user_id, status="active")
        with patch(SEARCH_PEOPLE, return_value=_provider([])):
            result = await search_leads(
                session, user_id, {"query": "ICU nurse", "campaignId": str(campaign.id)}, sink
            )
        await session.refresh(campaign)
        assert result.leads_found == 0
        assert campaign.status == "draft"
        assert await credits_repo.list_usage(session, user_id) == []
        assert sink.events == []

    @pytest.mark.asyncio
    async def test_do_not_contact_emails_are_skipped(self, session, user_id, sink):
        await make_subscription(session, user_id, credits_limit=100)
        await suppression_repo.add(session, user_id, "ana@cedars.org")
        results = [
            search_hit("Ana Ruiz", "ana-ruiz", text="Reach me: Ana@Cedars.org"),
            search_hit("Ben Cho", "ben-cho", text="ben@ucla.edu"),
        ]
        with patch(SEARCH_PEOPLE, return_value=_provider(results)):
            result = await search_leads(session, user_id, {"query": "ICU nurse"}, sink)
        assert (result.leads_found, result.leads_skipped) == (1, 1)
        assert [lead.email for lead in await _leads(session, user_id)] == ["ben@ucla.edu"]


class TestScoringStep:
    @pytest.mark.asyncio
    @patch("tools.llm_tools.llm_available", return_value=True)
    async def test_scoring_failure_keeps_leads_and_succeeds(self, _available, session, user_id, sink):
        await make_subscription(session, user_id, credits_limit=100)
        with patch("tools.llm_tools.chat_completion", side_effect=RuntimeError("LLM down")), \
                patch(SEARCH_PEOPLE, return_value=_provider(_nurses(2))) as mock_search:
            result = await search_leads(session, user_id, {"query": "ICU nurse"}, sink)

        assert result.success
        assert result.leads_found == 2
        assert mock_search.call_args.args[0] == "ICU nurse"
        for lead in await _leads(session, user_id):
            assert "match_score" not in lead.profile_data

    @pytest.mark.asyncio
    @patch("tools.llm_tools.llm_available", return_value=True)
    async def test_scores_use_the_original_query(self, _available, session, user_id, sink):
        await make_subscription(session, user_id, credits_limit=100)
        expanded = SimpleNamespace(choices=[SimpleNamespace(
            message=SimpleNamespace(content="ICU OR Critical Care RN Houston TX", tool_calls=None)
        )])
        scores = {"scores": [
            {"index": 0, "match_score": 88, "license_match": True, "cert_match": True,
             "experience_match": True, "location_match": False, "notes": "Good"},
        ]}
        scored = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(
            content=None,
            tool_calls=[SimpleNamespace(function=SimpleNamespace(name="submit_scores", arguments=json.dumps(scores)))],
        ))])

        def fake_completion(messages, tools=None, **kwargs):
            return scored if tools else expanded

        with patch("tools.llm_tools.chat_completion", side_effect=fake_completion) as mock_llm, \
                patch(SEARCH_PEOPLE, return_value=_provider(_nurses(1))) as mock_search:
            await search_leads(session, user_id, {"query": "ICU nurse Houston"}, sink)

        assert mock_search.call_args.args[0] == "ICU OR Critical Care RN Houston TX"
        scoring_call = [c for c in mock_llm.call_args_list if c.kwargs.get("tools")][0]
        assert "ICU nurse Houston" in scoring_call.kwargs["messages"][0]["content"]
        (lead,) = await _leads(session, user_id)
        assert lead.profile_data["match_score"] == 88
        assert lead.profile_data["source"] == "exa_search"


class TestFailures:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {},
        {"query": "   "},
        {"query": "x" * 501},
        {"query": "ICU nurse", "campaignId": "not-a-uuid"},
        ["ICU nurse"],
    ])
    async def test_invalid_input_is_rejected(self, session, user_id, sink, payload):
        with patch(SEARCH_PEOPLE) as mock_search:
            with pytest.raises(ValidationFailed):
                await search_leads(session, user_id, payload, sink)
        mock_search.assert_not_called()

    @pytest.mark.asyncio
    async def test_campaign_of_another_user_is_rejected(self, session, user_id, sink):
        campaign = await make_campaign(session, user_id)
        other = type(user_id)("00000000-0000-4000-8000-000000000001")
        with pytest.raises(ValidationFailed) as exc:
            await search_leads(session, other, {"query": "ICU", "campaignId": str(campaign.id)}, sink)
        assert exc.value.error == "Campaign not found"

    @pytest.mark.asyncio
    async def test_rate_limit_blocks_before_provider(self, session, user_id, sink):
        now = datetime.now(timezone.utc)
        for _ in range(config.RATE_LIMIT_MAX_REQUESTS):
            await rate_limits_repo.record_request(session, user_id, SEARCH_ENDPOINT, now)
        with patch(SEARCH_PEOPLE) as mock_search:
            with pytest.raises(RateLimited) as exc:
                await search_leads(session, user_id, {"query": "ICU nurse"}, sink)
        assert exc.value.status_code == 429
        assert exc.value.retry_after >= 1
        mock_search.assert_not_called()

    @pytest.mark.asyncio
    async def test_provider_error_is_surfaced_with_nothing_written(self, session, user_id, sink):
        await make_subscription(session, user_id, credits_limit=100)
        with patch(SEARCH_PEOPLE, return_value={"results": [], "query": "q", "error": "502 Bad Gateway"}):
            with pytest.raises(ProviderError) as exc:
                await search_leads(session, user_id, {"query": "ICU nurse"}, sink)
        assert "502 Bad Gateway" in exc.value.error
        assert await _leads(session, user_id) == []
        assert await credits_repo.list_usage(session, user_id) == []


class TestStartWebsetSearch:
    @pytest.mark.asyncio
    async def test_creates_processing_record_with_secret(self, session, user_id, monkeypatch):
        monkeypatch.setattr(config, "EXA_WEBHOOK_SECRET", "whsec_test")
        await make_subscription(session, user_id, credits_limit=10, credits_used=4)
        campaign = await make_campaign(session, user_id)

        with patch("tools.exa_tools.exa_create_webset",
                   return_value={"webset_id": "ws_123", "status": "running"}) as mock_create:
            response = await start_webset_search(
                session, user_id, {"query": "ICU nurse", "campaignId": str(campaign.id), "count": 50}
            )

        assert response.model_dump(by_alias=True)["websetId"] == "ws_123"
        assert mock_create.call_args.args[1] == 6
        record = (await session.execute(select(WebsetSearch))).scalar_one()
        assert (record.status, record.webhook_secret, record.user_id) == ("processing", "whsec_test", user_id)
        await session.refresh(campaign)
        assert campaign.status == "searching"

    @pytest.mark.asyncio
    async def test_registered_webhook_secret_takes_precedence(self, session, user_id, monkeypatch):
        monkeypatch.setattr(config, "EXA_WEBHOOK_URL", "https://app.example.com/functions/v1/exa-webhook")
        monkeypatch.setattr(config, "EXA_WEBHOOK_SECRET", None)
        with patch("tools.exa_tools.exa_create_webset", return_value={"webset_id": "ws_9"}), \
                patch("tools.exa_tools.exa_create_webhook", return_value={"webhook_id": "wh", "secret": "fresh"}):
            await start_webset_search(session, user_id, {"query": "ER nurse"})
        record = (await session.execute(select(WebsetSearch))).scalar_one()
        assert record.webhook_secret == "fresh"

    @pytest.mark.asyncio
    async def test_provider_failure_creates_nothing(self, session, user_id):
        with patch("tools.exa_tools.exa_create_webset", return_value={"webset_id": None, "error": "401"}):
            with pytest.raises(ProviderError):
                await start_webset_search(session, user_id, {"query": "ER nurse"})
        assert (await session.execute(select(WebsetSearch))).scalars().all() == []
