"""
Money Helpers

Fixed-point arithmetic shared by every tier calculator.
All rounding is ROUND_HALF_UP at the smallest currency unit (quantum).
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal


def quantize_money(value: Decimal, quantum: Decimal) -> Decimal:
    """Round to the smallest currency unit, half up."""
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def split_with_remainder(
    base: Decimal, rates: list[Decimal], quantum: Decimal
) -> tuple[list[Decimal], Decimal]:
    """
    Take a rounded share of `base` for each rate and return what is left.

    The remainder absorbs every rounding difference, so
    sum(shares) + remainder == base exactly. When the rounded shares
    overshoot the base (rates summing to 1 with several half-ups), the
    excess is taken back from the shares in reverse order so the
    remainder never goes negative.
    """
    shares = [quantize_money(base * rate, quantum) for rate in rates]
    remainder = base - sum(shares, Decimal("0"))

    index = len(shares) - 1
    while remainder < 0 and index >= 0:
        taken = min(shares[index], -remainder)
        shares[index] -= taken
        remainder += taken
        index -= 1

    return shares, remainder


def split_evenly(amount: Decimal, agent_ids: list[int], quantum: Decimal) -> list[tuple[int, Decimal]]:
    """
    Divide `amount` evenly among agents, in ascending id order.

    Integer division happens in quantum units; leftover units go to the
    last agent so the shares sum exactly to `amount`.
    """
    if not agent_ids:
        return []

    ordered = sorted(agent_ids)
    units = (amount / quantum).to_integral_value(rounding=ROUND_DOWN)
    per_agent_units = int(units) // len(ordered)
    per_agent = per_agent_units * quantum

    shares = [(agent_id, per_agent) for agent_id in ordered]
    # leftover units land on the last agent
    last_id, last_share = shares[-1]
    shares[-1] = (last_id, last_share + (amount - per_agent * len(ordered)))
    return shares
