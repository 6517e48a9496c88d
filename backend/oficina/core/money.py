"""
Codec monetario (centavos)
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Tutti gli importi del sistema sono interi in unità minori (centavos).
Le conversioni da/verso valori decimali passano sempre da Decimal,
mai da aritmetica float.
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from oficina.core.exceptions import BusinessValidationError

CENTS = Decimal("0.01")

Number = Union[int, float, str, Decimal]


class MoneyCodec:
    """
    Conversione tra centavos interi e valori decimali/di visualizzazione.

    Usage:
        MoneyCodec.from_decimal("150,00")  # 15000
        MoneyCodec.format(15000)           # "R$ 150,00"
    """

    @staticmethod
    def _to_decimal(value: Number) -> Decimal:
        if isinstance(value, bool):
            raise BusinessValidationError(f"Valore monetario non valido: {value!r}")
        if isinstance(value, Decimal):
            return value
        if isinstance(value, int):
            return Decimal(value)
        if isinstance(value, float):
            # repr del float, non la sua espansione binaria
            return Decimal(str(value))
        text = str(value).strip().replace("R$", "").replace(" ", "")
        if "," in text:
            # formato pt-BR: 1.234,56
            text = text.replace(".", "").replace(",", ".")
        try:
            return Decimal(text)
        except InvalidOperation:
            raise BusinessValidationError(f"Valore monetario non valido: {value!r}")

    @classmethod
    def from_decimal(cls, value: Number) -> int:
        """
        Converte un valore in reais in centavos (arrotondamento half-up).

        Args:
            value: Importo in reais (int, float, Decimal o stringa "1.234,56")

        Returns:
            int: Importo in centavos

        Raises:
            BusinessValidationError: Se il valore non è numerico
        """
        amount = cls._to_decimal(value)
        if not amount.is_finite():
            raise BusinessValidationError(f"Valore monetario non valido: {value!r}")
        return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    # Alias leggibile per i valori provenienti da form
    from_float = from_decimal

    @staticmethod
    def to_decimal(cents: int) -> Decimal:
        """Converte centavos in Decimal con due cifre decimali."""
        return (Decimal(cents) / 100).quantize(CENTS)

    @staticmethod
    def split_truncated(total: int, parts: int) -> int:
        """
        Quota di una rata troncata ai centavos interi.

        Args:
            total: Importo totale in centavos
            parts: Numero di rate

        Returns:
            int: Importo della singola rata (troncato)
        """
        if parts < 1:
            raise BusinessValidationError("Il numero di rate deve essere almeno 1")
        quota = (Decimal(total) / parts).quantize(Decimal("1"), rounding=ROUND_DOWN)
        return int(quota)

    @classmethod
    def format_plain(cls, cents: int) -> str:
        """Formato decimale con virgola senza simbolo: 1234,56 (per CSV)."""
        return f"{cls.to_decimal(cents):.2f}".replace(".", ",")

    @classmethod
    def format(cls, cents: int) -> str:
        """Formato valuta pt-BR: R$ 1.234,56"""
        sign = "-" if cents < 0 else ""
        value = f"{cls.to_decimal(abs(cents)):,.2f}"
        value = value.replace(",", "_").replace(".", ",").replace("_", ".")
        return f"{sign}R$ {value}"
