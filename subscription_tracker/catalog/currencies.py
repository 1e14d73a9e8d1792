"""
Supported currencies.

Currency is a display label only. Amounts are never converted.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

DEFAULT_SYMBOL = "$"


class Currency(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    symbol: str

    @property
    def option_label(self) -> str:
        """Text for a currency picker, e.g. '€ Euro (EUR)'."""
        return f"{self.symbol} {self.name} ({self.code})"


_CURRENCIES = [
    Currency(code="USD", name="US Dollar", symbol="$"),
    Currency(code="EUR", name="Euro", symbol="€"),
    Currency(code="GBP", name="British Pound", symbol="£"),
    Currency(code="JPY", name="Japanese Yen", symbol="¥"),
    Currency(code="INR", name="Indian Rupee", symbol="₹"),
    Currency(code="CAD", name="Canadian Dollar", symbol="C$"),
    Currency(code="AUD", name="Australian Dollar", symbol="A$"),
    Currency(code="CHF", name="Swiss Franc", symbol="CHF"),
    Currency(code="CNY", name="Chinese Yuan", symbol="¥"),
    Currency(code="SEK", name="Swedish Krona", symbol="kr"),
    Currency(code="NZD", name="New Zealand Dollar", symbol="NZ$"),
    Currency(code="MXN", name="Mexican Peso", symbol="$"),
    Currency(code="SGD", name="Singapore Dollar", symbol="S$"),
    Currency(code="HKD", name="Hong Kong Dollar", symbol="HK$"),
    Currency(code="NOK", name="Norwegian Krone", symbol="kr"),
    Currency(code="KRW", name="South Korean Won", symbol="₩"),
    Currency(code="TRY", name="Turkish Lira", symbol="₺"),
    Currency(code="RUB", name="Russian Ruble", symbol="₽"),
    Currency(code="BRL", name="Brazilian Real", symbol="R$"),
    Currency(code="ZAR", name="South African Rand", symbol="R"),
    Currency(code="PLN", name="Polish Złoty", symbol="zł"),
]

_BY_CODE = {currency.code: currency for currency in _CURRENCIES}


def list_currencies() -> list[Currency]:
    return list(_CURRENCIES)


def get_currency(code: Optional[str]) -> Optional[Currency]:
    if not code:
        return None
    return _BY_CODE.get(code.upper())


def is_known_currency(code: Optional[str]) -> bool:
    return get_currency(code) is not None


def currency_symbol(code: Optional[str]) -> str:
    """Symbol for ``code``, falling back to '$' for unknown codes."""
    currency = get_currency(code)
    return currency.symbol if currency else DEFAULT_SYMBOL
