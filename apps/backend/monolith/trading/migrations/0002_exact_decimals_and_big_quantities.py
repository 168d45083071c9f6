# Exact decimal storage on every backend and 64-bit share quantities

from decimal import Decimal

from django.db import migrations, models

import trading.models.fields

DECIMAL_COLUMNS = {
    'Wallet': ['balance'],
    'Holding': ['average_price'],
    'Order': ['price', 'total_amount'],
}


def rewrite_sqlite_decimals(apps, schema_editor):
    """Rows copied from the old NUMERIC columns hold text like '500.0'; pad them to fixed scale."""
    if schema_editor.connection.vendor != 'sqlite':
        return
    db_alias = schema_editor.connection.alias
    for model_name, columns in DECIMAL_COLUMNS.items():
        model = apps.get_model('trading', model_name)
        for row in model.objects.using(db_alias).values('pk', *columns):
            pk = row.pop('pk')
            model.objects.using(db_alias).filter(pk=pk).update(**row)


class Migration(migrations.Migration):

    dependencies = [
        ('trading', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='wallet',
            name='balance',
            field=trading.models.fields.ExactDecimalField(decimal_places=8, default=Decimal('0'), max_digits=28),
        ),
        migrations.AlterField(
            model_name='holding',
            name='quantity',
            field=models.PositiveBigIntegerField(),
        ),
        migrations.AlterField(
            model_name='holding',
            name='average_price',
            field=trading.models.fields.ExactDecimalField(decimal_places=10, max_digits=28),
        ),
        migrations.AlterField(
            model_name='order',
            name='quantity',
            field=models.PositiveBigIntegerField(),
        ),
        migrations.AlterField(
            model_name='order',
            name='price',
            field=trading.models.fields.ExactDecimalField(decimal_places=8, max_digits=20),
        ),
        migrations.AlterField(
            model_name='order',
            name='total_amount',
            field=trading.models.fields.ExactDecimalField(decimal_places=8, max_digits=28),
        ),
        migrations.RunPython(rewrite_sqlite_decimals, migrations.RunPython.noop),
    ]
