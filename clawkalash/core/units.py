"""Conversions between human amounts and integer base units."""

from decimal import Decimal, InvalidOperation, localcontext


def parse_amount(amount: str, decimals: int) -> int:
    """Convert a human amount string ("1.5") to base units without floats."""
    text = str(amount).strip()
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount}")

    if not value.is_finite() or value <= 0:
        raise ValueError(f"Amount must be a positive number, got {amount}")

    # Default context precision (28 digits) would round large 18-decimal amounts
    with localcontext() as ctx:
        ctx.prec = 100
        exponent = value.normalize().as_tuple().exponent
        if isinstance(exponent, int) and -exponent > decimals:
            raise ValueError(f"Amount {amount} has more than {decimals} decimal places")
        return int(value.scaleb(decimals))


def format_units(value: int, decimals: int) -> str:
    """Inverse of ``parse_amount``; trailing zeros are dropped."""
    if decimals == 0:
        return str(value)
    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), 10**decimals)
    fraction_text = str(fraction).rjust(decimals, "0").rstrip("0")
    return f"{sign}{whole}.{fraction_text}" if fraction_text else f"{sign}{whole}"


def format_ether(wei: int) -> str:
    return format_units(wei, 18)
