from django import template

from ..store_utils import format_currency

register = template.Library()


@register.filter
def currency(value):
    return format_currency(value)


@register.filter
def multiply(value, arg):
    try:
        return value * arg
    except TypeError:
        return 0
