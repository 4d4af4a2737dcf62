from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from app.config import Settings
from app.context import build_collaborators, build_drafter, build_sender
from app.dependencies import get_request_context
from app.negotiations.drafting import OpenAIEmailDrafter, TemplateEmailDrafter
from app.negotiations.notifier import LogOnlyEmailSender, WebhookEmailSender


def test_collaborators_default_to_local_stand_ins():
    settings = Settings(OPENAI_API_KEY=None, EMAIL_WEBHOOK_URL=None)
    assert isinstance(build_drafter(settings), TemplateEmailDrafter)
    assert isinstance(build_sender(settings), LogOnlyEmailSender)


def test_configured_collaborators():
    settings = Settings(
        OPENAI_API_KEY="sk-test",
        EMAIL_WEBHOOK_URL="https://automation.example.com/webhook",
        EMAIL_WEBHOOK_SECRET="s3cret",
    )
    assert isinstance(build_drafter(settings), OpenAIEmailDrafter)
    sender = build_sender(settings)
    assert isinstance(sender, WebhookEmailSender)
    assert sender.secret == "s3cret"


def _request(collaborators):
    app = SimpleNamespace(state=SimpleNamespace(collaborators=collaborators))
    return SimpleNamespace(app=app, state=SimpleNamespace(request_id="req-1"))


async def test_requests_share_one_openai_client():
    collaborators = build_collaborators(Settings(OPENAI_API_KEY="sk-test", EMAIL_WEBHOOK_URL=None))
    request = _request(collaborators)

    with patch("app.dependencies.get_database", return_value=MagicMock()):
        first = await get_request_context(request)
        second = await get_request_context(request)

    assert first.drafter is second.drafter is collaborators.drafter
    assert first.drafter.client is second.drafter.client
    assert first.request_id == "req-1"


async def test_aclose_closes_clients():
    collaborators = build_collaborators(
        Settings(OPENAI_API_KEY="sk-test", EMAIL_WEBHOOK_URL="https://automation.example.com/webhook")
    )
    collaborators.drafter.client = MagicMock(close=AsyncMock())
    collaborators.sender.client = MagicMock(aclose=AsyncMock())

    await collaborators.aclose()

    collaborators.drafter.client.close.assert_awaited_once()
    collaborators.sender.client.aclose.assert_awaited_once()
