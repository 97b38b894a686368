from django import template

register = template.Library()


@register.filter
def quetzales(value):
    """Format integer cents as quetzales (e.g., 123456 -> Q 1,234.56)."""
    try:
        cents = int(value)
    except (TypeError, ValueError):
        return value
    return f"Q {cents / 100.0:,.2f}"
