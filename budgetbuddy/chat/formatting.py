import datetime as dt
from decimal import Decimal


def format_inr(amount: Decimal) -> str:
    """Format amount in INR style: ₹5,000 or ₹82.50."""
    if amount == amount.to_integral_value():
        return f"₹{int(amount):,}"
    return f"₹{amount:,.2f}"


def format_display_date(day: dt.date) -> str:
    """'July 15, 2024'"""
    return f"{day:%B} {day.day}, {day.year}"


def plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"
