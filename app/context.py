"""Per-request dependencies.

Every service function takes a RequestContext instead of reaching for module
globals, so tests can hand in in-memory repositories and fake collaborators.
"""

from dataclasses import dataclass
from typing import Any, AsyncContextManager, Callable

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.bookings.repository import BookingRepository
from app.config import Settings
from app.drivers.repository import DriverRepository
from app.loads.repository import LoadRepository
from app.negotiations.drafting import EmailDrafter, OpenAIEmailDrafter, TemplateEmailDrafter
from app.negotiations.notifier import EmailSender, LogOnlyEmailSender, WebhookEmailSender
from app.negotiations.offers import OfferExtractor, RegexOfferExtractor
from app.negotiations.repository import NegotiationRepository
from app.trips.models import SearchConfig


@dataclass
class RequestContext:
    request_id: str
    loads: LoadRepository
    drivers: DriverRepository
    negotiations: NegotiationRepository
    bookings: BookingRepository
    drafter: EmailDrafter
    sender: EmailSender
    offer_extractor: OfferExtractor
    search: SearchConfig
    transaction: Callable[[], AsyncContextManager[Any]]  # Yields a session to pass to repository writes
    max_rounds: int = 5


def build_drafter(settings: Settings) -> EmailDrafter:
    if settings.OPENAI_API_KEY:
        return OpenAIEmailDrafter(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_MODEL,
            timeout=settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
        )
    return TemplateEmailDrafter()


def build_sender(settings: Settings) -> EmailSender:
    if settings.EMAIL_WEBHOOK_URL:
        return WebhookEmailSender(
            webhook_url=settings.EMAIL_WEBHOOK_URL,
            secret=settings.EMAIL_WEBHOOK_SECRET,
            timeout=settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
        )
    return LogOnlyEmailSender()


@dataclass
class Collaborators:
    """Process-wide drafter and sender, built once at startup and shared by every request."""

    drafter: EmailDrafter
    sender: EmailSender

    async def aclose(self) -> None:
        await self.drafter.aclose()
        await self.sender.aclose()


def build_collaborators(settings: Settings) -> Collaborators:
    return Collaborators(drafter=build_drafter(settings), sender=build_sender(settings))


def build_context(
    request_id: str,
    db: AsyncIOMotorDatabase,
    settings: Settings,
    transaction: Callable[[], AsyncContextManager[Any]],
    collaborators: Collaborators,
) -> RequestContext:
    return RequestContext(
        request_id=request_id,
        loads=LoadRepository(db, scan_limit=settings.LOAD_SCAN_LIMIT),
        drivers=DriverRepository(db),
        negotiations=NegotiationRepository(db),
        bookings=BookingRepository(db),
        drafter=collaborators.drafter,
        sender=collaborators.sender,
        offer_extractor=RegexOfferExtractor(),
        search=SearchConfig.from_settings(settings),
        transaction=transaction,
        max_rounds=settings.NEGOTIATION_MAX_ROUNDS,
    )
