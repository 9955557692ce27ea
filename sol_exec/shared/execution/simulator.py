"""
Swap Simulator
==============
Simulate stage of the pipeline: estimate the output of a SwapIntent.

Pure function of the intent and the quote capability. Touches neither the
wallet pool nor the endpoint pool.

Quote capability:
    QuoteProvider = (intent) -> (quoted_output, price_impact)

With a provider, the expected output is the worst fill still inside the
intent's slippage tolerance. Without one, the flat-discount fallback applies
and the result is still `ok=True`: the fallback is a stand-in policy, not a
degraded state. Production deployments plug in a real quote source.
"""

from typing import Callable, Optional, Tuple

from config.settings import Settings
from sol_exec.shared.execution.schemas import MAX_BPS, SimResult, SwapIntent
from sol_exec.shared.system.logging import Logger


QuoteProvider = Callable[[SwapIntent], Tuple[int, float]]


class SwapSimulator:
    """
    Usage:
        sim = SwapSimulator()                          # flat 5% fallback
        sim = SwapSimulator(quote_provider=jupiter_quote)
        result = sim.simulate(intent)
    """

    def __init__(
        self,
        quote_provider: Optional[QuoteProvider] = None,
        fallback_discount_bps: Optional[int] = None,
        fallback_price_impact: Optional[float] = None,
    ):
        self.quote_provider = quote_provider
        self.fallback_discount_bps = (
            Settings.FALLBACK_DISCOUNT_BPS if fallback_discount_bps is None else fallback_discount_bps
        )
        self.fallback_price_impact = (
            Settings.FALLBACK_PRICE_IMPACT if fallback_price_impact is None else fallback_price_impact
        )
        if not 0 <= self.fallback_discount_bps <= MAX_BPS:
            raise ValueError(f"fallback_discount_bps must be within 0..{MAX_BPS}")

    def simulate(self, intent: SwapIntent) -> SimResult:
        if intent.amount_in == 0:
            return SimResult(
                ok=False,
                expected_output=0,
                price_impact=0.0,
                error="amount_in must be greater than zero",
                source="invalid",
            )

        if self.quote_provider is None:
            return self._fallback(intent)

        try:
            quoted_output, price_impact = self.quote_provider(intent)
        except Exception as e:
            Logger.warning(f"[SIM] Quote provider failed for {intent.route}: {e}")
            return SimResult(
                ok=False,
                expected_output=0,
                price_impact=0.0,
                error=f"Quote failed: {e}",
                source="quote",
            )

        if quoted_output < 0:
            return SimResult(
                ok=False,
                expected_output=0,
                price_impact=float(price_impact),
                error=f"Quote returned negative output: {quoted_output}",
                source="quote",
            )

        expected = int(quoted_output) * (MAX_BPS - intent.slippage_bps) // MAX_BPS
        return SimResult(
            ok=True,
            expected_output=expected,
            price_impact=float(price_impact),
            source="quote",
        )

    def _fallback(self, intent: SwapIntent) -> SimResult:
        """Flat haircut, independent of slippage tolerance."""
        expected = intent.amount_in * (MAX_BPS - self.fallback_discount_bps) // MAX_BPS
        Logger.debug(
            f"[SIM] Fallback policy: {intent.amount_in} -> {expected} "
            f"({self.fallback_discount_bps} bps)"
        )
        return SimResult(
            ok=True,
            expected_output=expected,
            price_impact=self.fallback_price_impact,
            source="fallback",
        )
