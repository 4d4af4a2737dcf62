"""Negotiation state machine.

One negotiation is a strictly alternating exchange of $/mile offers between
the driver (drafted and emailed by us) and a broker (replies arrive through
broker_response). Round numbers strictly increase across the offer history:

    round 1   driver opening offer (start)
    round 2   broker reply          -> accept / counter / walk away
    round 3   driver counter
    ...

Every turn is persisted with a compare-and-swap on (current_round,
status=in_progress), so of two replies racing on the same negotiation only
one lands. Email drafting and delivery happen before any write: if either
collaborator fails, nothing changes.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from app.bookings.models import Booking
from app.bookings.service import commit_booking
from app.context import RequestContext
from app.drivers.models import Driver
from app.errors import ClientInputError, ConflictError, NotFoundError
from app.ids import generate_id
from app.loads.models import Load, LoadStatus
from app.negotiations.drafting import DraftContext
from app.negotiations.models import (
    BrokerResponseRequest,
    BrokerResponseResult,
    BrokerSimulationRequest,
    BrokerSimulationResponse,
    InitialOffer,
    LatestOffer,
    Negotiation,
    NegotiationStatus,
    Offer,
    OfferSender,
    StartNegotiationRequest,
    StartNegotiationResponse,
    is_terminal,
)
from app.negotiations.simulator import simulate_broker_response

logger = logging.getLogger(__name__)


def _subject(load: Load) -> str:
    return f"Load {load.load_id}: {load.origin.label} to {load.destination.label}"


async def _get_load(ctx: RequestContext, load_id: str) -> Load:
    load = await ctx.loads.get(load_id)
    if load is None:
        raise NotFoundError("Load", load_id)
    return load


async def _get_driver(ctx: RequestContext, driver_id: str) -> Driver:
    driver = await ctx.drivers.get(driver_id)
    if driver is None:
        raise NotFoundError("Driver", driver_id)
    return driver


async def get_negotiation(ctx: RequestContext, negotiation_id: str) -> Negotiation:
    negotiation = await ctx.negotiations.get(negotiation_id)
    if negotiation is None:
        raise NotFoundError("Negotiation", negotiation_id)
    return negotiation


async def start_negotiation(
    ctx: RequestContext, request: StartNegotiationRequest
) -> StartNegotiationResponse:
    load = await _get_load(ctx, request.load_id)
    driver = await _get_driver(ctx, request.driver_id)
    if load.status != LoadStatus.AVAILABLE:
        raise ConflictError(
            f"Load {load.load_id} is {load.status.value} and cannot be negotiated",
            code="LOAD_NOT_AVAILABLE",
            details={"load_id": load.load_id, "status": load.status.value},
        )

    max_rounds = request.max_rounds or ctx.max_rounds
    negotiation_id = generate_id("neg")
    asking_rate = driver.min_rate

    email_body = await ctx.drafter.draft_email(
        DraftContext(load=load, driver=driver, asking_rate=asking_rate, round=1, max_rounds=max_rounds),
        request.strategy,
    )
    await ctx.sender.deliver(
        to=load.broker.email,
        subject=_subject(load),
        body=email_body,
        metadata={"negotiation_id": negotiation_id, "load_id": load.load_id, "round": 1},
    )

    now = datetime.now(timezone.utc)
    negotiation = Negotiation(
        negotiation_id=negotiation_id,
        load_id=load.load_id,
        driver_id=driver.driver_id,
        broker_email=load.broker.email,
        driver_min_rate=driver.min_rate,
        market_rate=load.market_rate_avg,
        posted_rate=load.posted_rate,
        max_rounds=max_rounds,
        current_round=1,
        strategy=request.strategy,
        status=NegotiationStatus.IN_PROGRESS,
        offers=[
            Offer(round=1, amount=asking_rate, sender=OfferSender.DRIVER, timestamp=now, email_body=email_body)
        ],
        created_at=now,
        updated_at=now,
    )

    async with ctx.transaction() as session:
        await ctx.loads.conditional_update_status(
            load.load_id, {LoadStatus.AVAILABLE}, LoadStatus.IN_NEGOTIATION, session=session
        )
        await ctx.negotiations.insert(negotiation, session=session)

    logger.info(
        "Started negotiation %s on load %s for driver %s (%s, %d rounds) [%s]",
        negotiation_id,
        load.load_id,
        driver.driver_id,
        request.strategy.value,
        max_rounds,
        ctx.request_id,
    )
    return StartNegotiationResponse(
        negotiation_id=negotiation_id,
        status=negotiation.status,
        max_rounds=max_rounds,
        initial_offer=InitialOffer(round=1, amount=asking_rate, email_body=email_body),
    )


def _result(
    negotiation_id: str,
    status: NegotiationStatus,
    current_round: int,
    latest: Offer,
    booking_id: Optional[str] = None,
) -> BrokerResponseResult:
    return BrokerResponseResult(
        negotiation_id=negotiation_id,
        status=status,
        current_round=current_round,
        latest_offer=LatestOffer(round=latest.round, amount=latest.amount, sender=latest.sender),
        booking_id=booking_id,
    )


def _standing_broker_rate(negotiation: Negotiation) -> float:
    """The broker's last offer, or the posted rate if they never countered."""
    broker_offers = [o for o in negotiation.offers if o.sender == OfferSender.BROKER]
    return broker_offers[-1].amount if broker_offers else negotiation.posted_rate


async def handle_broker_response(
    ctx: RequestContext, negotiation_id: str, request: BrokerResponseRequest
) -> BrokerResponseResult:
    """Apply one broker reply: accept and book, counter, walk away, or record a rejection."""
    amount = ctx.offer_extractor.extract(request.email_body, request.counter_offer)
    if amount is None and not request.rejected:
        raise ClientInputError(
            "Could not find a $/mile offer in the broker response",
            code="OFFER_NOT_FOUND",
            details={"hint": "Send counter_offer or include a rate like '$2.85/mile' in email_body"},
        )

    negotiation = await get_negotiation(ctx, negotiation_id)
    if request.broker_email.strip().lower() != negotiation.broker_email.lower():
        raise ClientInputError(
            f"Reply sender does not match the broker on negotiation {negotiation_id}",
            code="BROKER_MISMATCH",
            details={"broker_email": request.broker_email},
        )
    if is_terminal(negotiation.status):
        raise ConflictError(
            f"Negotiation {negotiation_id} is already {negotiation.status.value}",
            code="NEGOTIATION_CLOSED",
            details={"negotiation_id": negotiation_id, "status": negotiation.status.value},
        )

    now = datetime.now(timezone.utc)
    expected_round = negotiation.current_round
    broker_round = expected_round + 1
    broker_offer = Offer(
        round=broker_round,
        amount=amount if amount is not None else _standing_broker_rate(negotiation),
        sender=OfferSender.BROKER,
        timestamp=now,
        email_body=request.email_body,
    )

    if request.rejected:
        await _close_without_deal(ctx, negotiation, broker_offer, NegotiationStatus.REJECTED, now)
        return _result(negotiation_id, NegotiationStatus.REJECTED, broker_round, broker_offer)

    load = await _get_load(ctx, negotiation.load_id)

    if broker_offer.amount >= negotiation.driver_min_rate:
        booking = await _accept(ctx, negotiation, load, broker_offer, now)
        return _result(negotiation_id, NegotiationStatus.ACCEPTED, broker_round, broker_offer, booking.booking_id)

    if broker_round < negotiation.max_rounds:
        driver = await _get_driver(ctx, negotiation.driver_id)
        counter = await _counter(ctx, negotiation, load, driver, broker_offer, now)
        return _result(negotiation_id, NegotiationStatus.IN_PROGRESS, counter.round, counter)

    await _close_without_deal(ctx, negotiation, broker_offer, NegotiationStatus.WALKED_AWAY, now)
    return _result(negotiation_id, NegotiationStatus.WALKED_AWAY, broker_round, broker_offer)


async def _accept(
    ctx: RequestContext, negotiation: Negotiation, load: Load, broker_offer: Offer, now: datetime
) -> Booking:
    async def record_acceptance(session, booking: Booking) -> None:
        await ctx.negotiations.update(
            negotiation.negotiation_id,
            negotiation.current_round,
            current_round=broker_offer.round,
            status=NegotiationStatus.ACCEPTED,
            new_offers=[broker_offer],
            booking_id=booking.booking_id,
            updated_at=now,
            session=session,
        )

    booking = await commit_booking(
        ctx,
        load,
        negotiation.driver_id,
        broker_offer.amount,
        {LoadStatus.AVAILABLE, LoadStatus.IN_NEGOTIATION},
        negotiation_id=negotiation.negotiation_id,
        in_transaction=record_acceptance,
    )
    logger.info(
        "Negotiation %s accepted at $%.2f/mile in round %d [%s]",
        negotiation.negotiation_id,
        broker_offer.amount,
        broker_offer.round,
        ctx.request_id,
    )
    return booking


async def _counter(
    ctx: RequestContext,
    negotiation: Negotiation,
    load: Load,
    driver: Driver,
    broker_offer: Offer,
    now: datetime,
) -> Offer:
    counter_round = broker_offer.round + 1
    asking_rate = negotiation.driver_min_rate
    email_body = await ctx.drafter.draft_email(
        DraftContext(
            load=load,
            driver=driver,
            asking_rate=asking_rate,
            round=counter_round,
            max_rounds=negotiation.max_rounds,
            broker_offer=broker_offer.amount,
            history=negotiation.offers + [broker_offer],
        ),
        negotiation.strategy,
    )
    await ctx.sender.deliver(
        to=negotiation.broker_email,
        subject=f"Re: {_subject(load)}",
        body=email_body,
        metadata={
            "negotiation_id": negotiation.negotiation_id,
            "load_id": load.load_id,
            "round": counter_round,
        },
    )

    counter = Offer(
        round=counter_round,
        amount=asking_rate,
        sender=OfferSender.DRIVER,
        timestamp=now,
        email_body=email_body,
    )
    await ctx.negotiations.update(
        negotiation.negotiation_id,
        negotiation.current_round,
        current_round=counter_round,
        status=NegotiationStatus.IN_PROGRESS,
        new_offers=[broker_offer, counter],
        updated_at=now,
    )
    logger.info(
        "Negotiation %s: broker offered $%.2f, countered at $%.2f (round %d of %d) [%s]",
        negotiation.negotiation_id,
        broker_offer.amount,
        asking_rate,
        counter_round,
        negotiation.max_rounds,
        ctx.request_id,
    )
    return counter


async def _close_without_deal(
    ctx: RequestContext,
    negotiation: Negotiation,
    broker_offer: Offer,
    status: NegotiationStatus,
    now: datetime,
) -> None:
    """End the negotiation and hand the load back to the available pool."""
    async with ctx.transaction() as session:
        await ctx.negotiations.update(
            negotiation.negotiation_id,
            negotiation.current_round,
            current_round=broker_offer.round,
            status=status,
            new_offers=[broker_offer],
            updated_at=now,
            session=session,
        )
        await ctx.loads.conditional_update_status(
            negotiation.load_id, {LoadStatus.IN_NEGOTIATION}, LoadStatus.AVAILABLE, session=session
        )
    logger.info(
        "Negotiation %s ended %s in round %d; load %s released [%s]",
        negotiation.negotiation_id,
        status.value,
        broker_offer.round,
        negotiation.load_id,
        ctx.request_id,
    )


def simulate(request: BrokerSimulationRequest) -> BrokerSimulationResponse:
    reply = simulate_broker_response(
        driver_offer=request.driver_offer,
        posted_rate=request.posted_rate,
        market_rate_avg=request.market_rate_avg,
        current_round=request.round,
        max_rounds=request.max_rounds,
    )
    logger.info(
        "Simulated broker %s for negotiation %s (round %d, driver $%.2f)",
        reply.action,
        request.negotiation_id,
        request.round,
        request.driver_offer,
    )
    return BrokerSimulationResponse(
        negotiation_id=request.negotiation_id,
        action=reply.action,
        broker_offer=reply.broker_offer,
        message=reply.message,
        delay_seconds=reply.delay_seconds,
    )
