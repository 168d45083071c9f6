# trading/models/fields.py

from decimal import Decimal, InvalidOperation

from django.db import DataError, models


class ExactDecimalField(models.DecimalField):
    """
    DecimalField that stores every digit on every backend.

    PostgreSQL keeps its native numeric(max_digits, decimal_places) column.
    SQLite has no decimal storage (NUMERIC affinity keeps 15 significant
    digits as a double), so there the value is written as fixed-point text
    with exactly `decimal_places` decimals. Equal scale keeps the text order
    of a value against zero the same as its numeric order, which the check
    constraints rely on.

    Values that do not fit raise DataError on both backends.
    """

    def get_internal_type(self):
        return "ExactDecimalField"

    def db_type(self, connection):
        if connection.vendor == "sqlite":
            return "text"
        return connection.data_types["DecimalField"] % self.db_type_parameters(connection)

    def from_db_value(self, value, expression, connection):
        if value is None or isinstance(value, Decimal):
            return value
        return Decimal(str(value))

    def get_db_prep_save(self, value, connection):
        if hasattr(value, "as_sql"):
            return value
        return self.get_db_prep_value(value, connection=connection, prepared=False)

    def get_db_prep_value(self, value, connection, prepared=False):
        value = super().get_db_prep_value(value, connection, prepared)
        if connection.vendor != "sqlite" or value is None or hasattr(value, "as_sql"):
            return value
        return self.to_fixed_text(value)

    def to_fixed_text(self, value) -> str:
        """Render `value` with `decimal_places` decimals, e.g. '12.50000000'."""
        exponent = Decimal(1).scaleb(-self.decimal_places)
        try:
            quantized = Decimal(value).quantize(exponent, context=self.context)
        except InvalidOperation as e:
            raise DataError(
                f"{value} does not fit in {self.max_digits} digits with {self.decimal_places} decimal places"
            ) from e
        if quantized.is_zero():
            quantized = quantized.copy_abs()
        return format(quantized, "f")
