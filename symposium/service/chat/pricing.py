from decimal import ROUND_HALF_UP, Decimal

from symposium.config.config import MODEL_PRICING

_CENTS_DIVISOR = Decimal(10000)


def cost_cents(model_id: str, input_tokens: int, output_tokens: int, pricing: dict | None = None) -> int:
    """
    Price one completion in integer cents.

    Rates are USD per million tokens, so tokens * rate / 10000 is cents.
    Halves round up. Unknown models cost nothing.
    """
    table = MODEL_PRICING if pricing is None else pricing
    rates = table.get(model_id)
    if rates is None:
        return 0
    input_rate, output_rate = rates
    raw = (
        Decimal(max(input_tokens or 0, 0)) * Decimal(str(input_rate))
        + Decimal(max(output_tokens or 0, 0)) * Decimal(str(output_rate))
    ) / _CENTS_DIVISOR
    return int(raw.quantize(Decimal(1), rounding=ROUND_HALF_UP))
