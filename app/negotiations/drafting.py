"""Drafting negotiation emails.

The negotiation service treats drafting as an opaque collaborator: it hands
over a DraftContext and gets back email text. OpenAIEmailDrafter calls the
OpenAI chat API; TemplateEmailDrafter renders fixed text and is used when no
API key is configured.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from openai import AsyncOpenAI, OpenAIError

from app.drivers.models import Driver
from app.errors import ServiceUnavailableError
from app.loads.models import Load
from app.negotiations.models import NegotiationStrategy, Offer

logger = logging.getLogger(__name__)


STRATEGY_TONE = {
    NegotiationStrategy.AGGRESSIVE: (
        "Be assertive. Hold firm on the rate and make clear you are ready to walk away."
    ),
    NegotiationStrategy.MODERATE: (
        "Be professional and balanced. Show some flexibility but keep to your minimum rate."
    ),
    NegotiationStrategy.CONSERVATIVE: (
        "Be polite and accommodating. Emphasise building a long-term relationship."
    ),
}

TEMPLATE_CLOSING = {
    NegotiationStrategy.AGGRESSIVE: "That is my floor for this lane; let me know today if it works.",
    NegotiationStrategy.MODERATE: "Let me know if we can make that work and I will get it covered.",
    NegotiationStrategy.CONSERVATIVE: "Happy to talk it through. I look forward to running more freight with you.",
}


@dataclass
class DraftContext:
    """Everything a drafter may use to write one driver email."""

    load: Load
    driver: Driver
    asking_rate: float  # $/mile the email must request
    round: int
    max_rounds: int
    broker_offer: Optional[float] = None  # Set for counter-offers
    history: list[Offer] = field(default_factory=list)

    @property
    def is_opening(self) -> bool:
        return self.broker_offer is None


class EmailDrafter(Protocol):
    async def draft_email(self, context: DraftContext, strategy: NegotiationStrategy) -> str: ...

    async def aclose(self) -> None: ...


def build_prompt(context: DraftContext, strategy: NegotiationStrategy) -> str:
    load = context.load
    lines = [
        "You are a negotiation assistant writing to a freight broker on behalf of a truck driver.",
        "",
        "LOAD DETAILS:",
        f"- Load ID: {load.load_id}",
        f"- Route: {load.origin.label} to {load.destination.label} ({load.distance_miles:.0f} miles)",
        f"- Equipment: {load.equipment.value}",
        f"- Pickup window: {load.pickup_window}",
        "",
        "RATES ($/mile):",
        f"- Posted: {load.posted_rate:.2f}",
        f"- Market average: {load.market_rate_avg:.2f} (high {load.market_rate_high:.2f}, trend {load.rate_trend.value})",
        f"- Driver minimum: {context.driver.min_rate:.2f}",
    ]
    if not context.is_opening:
        lines += [
            f"- Broker's current offer: {context.broker_offer:.2f}",
            "",
            "NEGOTIATION HISTORY:",
            *[f"Round {o.round}: {o.sender.value} offered ${o.amount:.2f}/mile" for o in context.history],
        ]
    lines += [
        "",
        f"ROUND {context.round} of {context.max_rounds}. STRATEGY: {strategy.value}.",
        STRATEGY_TONE[strategy],
        "",
        f"Request a rate of ${context.asking_rate:.2f}/mile. Reference the load ID and route, "
        "cite the market data, and stay under 200 words.",
        "Return ONLY the email body text, no subject line or signature.",
    ]
    return "\n".join(lines)


class OpenAIEmailDrafter:
    def __init__(self, api_key: str, model: str, timeout: float):
        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=1)
        self.model = model

    async def draft_email(self, context: DraftContext, strategy: NegotiationStrategy) -> str:
        prompt = build_prompt(context, strategy)
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=600,
                temperature=0.7,
            )
        except OpenAIError as exc:
            logger.warning("Email drafting failed for load %s: %s", context.load.load_id, exc)
            raise ServiceUnavailableError("Text generation service") from exc

        text = (completion.choices[0].message.content or "").strip() if completion.choices else ""
        if not text:
            raise ServiceUnavailableError("Text generation service", details={"reason": "empty completion"})
        return text

    async def aclose(self) -> None:
        await self.client.close()


class TemplateEmailDrafter:
    """Deterministic drafts for local runs and tests."""

    async def draft_email(self, context: DraftContext, strategy: NegotiationStrategy) -> str:
        load = context.load
        route = f"{load.origin.label} to {load.destination.label}"
        if context.is_opening:
            opener = f"I'm interested in load {load.load_id} ({route})."
        else:
            opener = (
                f"Thanks for coming back on load {load.load_id} ({route}) "
                f"at ${context.broker_offer:.2f}/mile."
            )
        return (
            f"{opener} With the lane averaging ${load.market_rate_avg:.2f}/mile, "
            f"I can haul it for ${context.asking_rate:.2f}/mile. "
            f"{TEMPLATE_CLOSING[strategy]}"
        )

    async def aclose(self) -> None:
        pass
