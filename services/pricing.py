"""
Pricing rules for a purchase

Loyalty discount: a buyer whose lifetime spend is already strictly above
LOYALTY_THRESHOLD gets LOYALTY_RATE off. Eligibility uses the spend *before*
the current purchase is added. Totals are rounded to the cent, half up.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from services.errors import InvalidArgument

LOYALTY_THRESHOLD = Decimal("150")
LOYALTY_RATE = Decimal("0.05")
MIN_QUANTITY = 1
MAX_QUANTITY = 5
CENT = Decimal("0.01")

Number = Union[int, float, str, Decimal]

def to_decimal(value: Number) -> Decimal:
    """
    Converts a price or amount to Decimal

    Floats go through ``str`` so 19.99 stays 19.99 and does not become
    19.989999999999998436805981327779591083526611328125.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise InvalidArgument(f"Not a number: {value!r}")

def discount_rate(total_spent: Number) -> Decimal:
    if to_decimal(total_spent) > LOYALTY_THRESHOLD:
        return LOYALTY_RATE
    return Decimal("0")

def round_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)

def compute_total(price: Number, quantity: int, rate: Number = 0) -> Decimal:
    """
    Price for ``quantity`` copies after the discount

    Parameters
    ----------
    price : number
        Unit price of the book.
    quantity : int
        Copies bought.
    rate : number
        Discount as a fraction, e.g. 0.05.

    Returns
    -------
    Decimal
        ``price * quantity * (1 - rate)`` rounded half up to 2 places.
    """
    item_total = to_decimal(price) * quantity
    return round_cents(item_total * (1 - to_decimal(rate)))

def parse_quantity(value) -> int:
    """
    Validates a requested quantity

    Accepts ints, integral floats and digit strings ("2", " 3 ").

    Raises
    ------
    InvalidArgument
        If the value is missing, not a whole number, or outside
        MIN_QUANTITY..MAX_QUANTITY.
    """
    error = InvalidArgument(
        f"Invalid quantity ({MIN_QUANTITY}-{MAX_QUANTITY} allowed): {value!r}"
    )
    if value is None or isinstance(value, bool):
        raise error
    if isinstance(value, int):
        qty = value
    elif isinstance(value, (float, Decimal)):
        try:
            whole = value == int(value)
        except (ValueError, OverflowError):
            raise error
        if not whole:
            raise error
        qty = int(value)
    elif isinstance(value, str):
        try:
            qty = int(value.strip())
        except ValueError:
            raise error
    else:
        raise error
    if not MIN_QUANTITY <= qty <= MAX_QUANTITY:
        raise error
    return qty
