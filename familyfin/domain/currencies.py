"""ファミリーで選択できる通貨の一覧"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Currency:
    code: str
    name: str
    symbol: str


CURRENCIES: tuple[Currency, ...] = (
    Currency("INR", "Indian Rupee", "₹"),
    Currency("USD", "United States Dollar", "$"),
    Currency("EUR", "Euro", "€"),
    Currency("JPY", "Japanese Yen", "¥"),
    Currency("GBP", "British Pound Sterling", "£"),
    Currency("AUD", "Australian Dollar", "$"),
    Currency("CAD", "Canadian Dollar", "$"),
    Currency("CHF", "Swiss Franc", "Fr"),
    Currency("CNY", "Chinese Yuan", "¥"),
    Currency("BRL", "Brazilian Real", "R$"),
    Currency("RUB", "Russian Ruble", "₽"),
    Currency("KRW", "South Korean Won", "₩"),
    Currency("MXN", "Mexican Peso", "$"),
    Currency("SGD", "Singapore Dollar", "$"),
    Currency("NZD", "New Zealand Dollar", "$"),
    Currency("ZAR", "South African Rand", "R"),
)

_BY_CODE = {c.code: c for c in CURRENCIES}


def find_currency(code: str) -> Currency | None:
    """通貨コード（大文字小文字を区別しない）から Currency を返す"""
    return _BY_CODE.get(code.strip().upper())
