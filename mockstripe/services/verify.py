"""Parameter checks that run before any record is touched."""
from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from mockstripe.errors import StripeError, parameter_missing

VALID_CURRENCIES = (
    "usd", "aed", "afn", "all", "amd", "ang", "aoa", "ars", "aud", "awg", "azn",
    "bam", "bbd", "bdt", "bgn", "bif", "bmd", "bnd", "bob", "brl", "bsd", "bwp",
    "bzd", "cad", "cdf", "chf", "clp", "cny", "cop", "crc", "cve", "czk", "djf",
    "dkk", "dop", "dzd", "egp", "etb", "eur", "fjd", "fkp", "gbp", "gel", "gip",
    "gmd", "gnf", "gtq", "gyd", "hkd", "hnl", "hrk", "htg", "huf", "idr", "ils",
    "inr", "isk", "jmd", "jpy", "kes", "kgs", "khr", "kmf", "krw", "kyd", "kzt",
    "lak", "lbp", "lkr", "lrd", "lsl", "mad", "mdl", "mga", "mkd", "mmk", "mnt",
    "mop", "mro", "mur", "mvr", "mwk", "mxn", "myr", "mzn", "nad", "ngn", "nio",
    "nok", "npr", "nzd", "pab", "pen", "pgk", "php", "pkr", "pln", "pyg", "qar",
    "ron", "rsd", "rub", "rwf", "sar", "sbd", "scr", "sek", "sgd", "shp", "sll",
    "sos", "srd", "std", "szl", "thb", "tjs", "top", "try", "ttd", "twd", "tzs",
    "uah", "ugx", "uyu", "uzs", "vnd", "vuv", "wst", "xaf", "xcd", "xof", "xpf",
    "yer", "zar", "zmw", "eek", "lvl", "svc", "vef", "ltl",
)
_VALID_CURRENCY_SET = frozenset(VALID_CURRENCIES)

# Smallest unit of each currency. Currencies not listed have no enforced minimum.
MIN_CHARGE_AMOUNT: dict[str, int] = {
    "usd": 50,
    "aud": 50,
    "brl": 50,
    "cad": 50,
    "chf": 50,
    "dkk": 250,
    "eur": 50,
    "hkd": 400,
    "jpy": 50,
    "mxn": 10,
    "nok": 300,
    "nzd": 50,
    "sek": 300,
    "sgd": 50,
}

ZERO_DECIMAL_CURRENCIES = frozenset(
    {"bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga", "pyg", "rwf",
     "ugx", "vnd", "vuv", "xaf", "xof", "xpf"}
)

MAX_AMOUNT = 99_999_999

_PARAM_NAME = re.compile(r"^([a-zA-Z_]+)(?:\[([a-zA-Z_]+)\])?$")


def required_params(params: Mapping[str, Any], param_names: Iterable[str]) -> None:
    """Supports the forms "param" and "param[child]"."""
    for param_name in param_names:
        match = _PARAM_NAME.match(param_name)
        if not match:
            raise ValueError('Unexpected param name. Must be "foo" or "foo[bar]".')
        parent, child = match.group(1), match.group(2)
        if parent not in params or params[parent] is None:
            raise parameter_missing(param_name)
        if child:
            nested = params[parent]
            if not isinstance(nested, Mapping) or child not in nested:
                raise parameter_missing(param_name)


def required_value(
    params: Mapping[str, Any], param_name: str, valid_values: Sequence[Any]
) -> None:
    """Enum check. Include None in ``valid_values`` to make the param optional."""
    value = params.get(param_name)
    if value in valid_values:
        return
    printable = [str(v) for v in valid_values if v]
    if len(printable) > 1:
        choices = ", ".join(printable[:-1]) + " or " + printable[-1]
    else:
        choices = printable[0] if printable else ""
    raise StripeError(
        400,
        f"Invalid {param_name}: must be one of {choices}",
        param=param_name,
    )


def currency(code: str | None, param_name: str = "currency") -> None:
    if code not in _VALID_CURRENCY_SET:
        raise StripeError(
            400,
            f"Invalid currency: {code}. Stripe currently supports these currencies: "
            + ", ".join(VALID_CURRENCIES),
            param=param_name,
        )


def positive_amount(amount: int, param_name: str = "amount") -> None:
    if amount < 1:
        raise StripeError(
            400,
            "Invalid positive integer",
            code="parameter_invalid_integer",
            param=param_name,
        )
    if amount > MAX_AMOUNT:
        raise StripeError(
            400,
            "Amount must be no more than $999,999.99",
            code="amount_too_large",
            param=param_name,
        )


def _format_minimum(minimum: int, currency_code: str) -> str:
    if currency_code == "usd":
        return f"{minimum} cents"
    if currency_code in ZERO_DECIMAL_CURRENCIES:
        return f"{minimum} {currency_code}"
    return f"{minimum / 100:.2f} {currency_code}"


def min_charge_amount(amount: int, currency_code: str, param_name: str | None = "amount") -> None:
    minimum = MIN_CHARGE_AMOUNT.get(currency_code)
    if minimum is not None and amount < minimum:
        raise StripeError(
            400,
            f"Amount must be at least {_format_minimum(minimum, currency_code)}",
            code="amount_too_small",
            param=param_name,
        )


