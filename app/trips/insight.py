from typing import Iterable, Optional

from app.loads.models import Load
from app.trips.models import LoadChain, LoadWithScore, MarketInsight
from app.trips.scoring import load_revenue


def generate_insight(
    best_direct: Optional[LoadWithScore],
    best_chain: Optional[LoadChain],
    result_loads: Iterable[Load],
    loads_scanned: int,
    savings_threshold: float = 50,
) -> MarketInsight:
    """Recommend direct or chain and summarise the market for the loads in the results.

    ``result_loads`` is every load shown to the driver; the same load id is
    counted once in the average market rate. ``load_count`` reports
    ``loads_scanned``, the size of the available-load scan. Chain wins only
    when it earns more than ``savings_threshold`` dollars over the best
    direct load, otherwise fewer legs win.
    """
    unique = {load.load_id: load for load in result_loads}
    avg_market_rate = (
        round(sum(load.market_rate_avg for load in unique.values()) / len(unique), 3) if unique else 0.0
    )
    base = {"avg_market_rate": avg_market_rate, "load_count": loads_scanned}

    if best_direct is None and best_chain is None:
        return MarketInsight(
            **base,
            best_option="none",
            recommendation="No loads match this search. Try widening the radius or changing equipment.",
        )

    if best_chain is None:
        return MarketInsight(
            **base,
            best_option="direct",
            recommendation=(
                f"Take {best_direct.load.load_id} at ${best_direct.load.posted_rate:.2f}/mile "
                f"({best_direct.market_comparison} market)."
            ),
        )

    if best_direct is None:
        return MarketInsight(
            **base,
            best_option="chain",
            recommendation=(
                f"No direct load on this lane. Chain {best_chain.summary} pays "
                f"${best_chain.total_revenue:,.2f} over {len(best_chain.legs)} legs."
            ),
        )

    savings = round(best_chain.total_revenue - load_revenue(best_direct.load), 2)
    if savings > savings_threshold:
        best_option = "chain"
        recommendation = (
            f"Chain {best_chain.summary} earns ${savings:,.2f} more than the best direct load."
        )
    elif savings < -savings_threshold:
        best_option = "direct"
        recommendation = (
            f"Direct load {best_direct.load.load_id} earns ${-savings:,.2f} more than the best chain."
        )
    else:
        best_option = "direct"
        recommendation = (
            f"Direct load {best_direct.load.load_id} pays about the same as the best chain "
            f"with fewer stops."
        )

    return MarketInsight(
        **base,
        best_option=best_option,
        recommendation=recommendation,
        savings_vs_direct=savings,
    )
