"""
Fecha de alta de los usuarios (métricas y orden de la lista de administración).
"""

from django.db import migrations, models
import django.utils.timezone


class Migration(migrations.Migration):

    dependencies = [
        ('tickets', '0002_datos_iniciales'),
    ]

    operations = [
        migrations.AddField(
            model_name='usuariomodel',
            name='fecha_creacion',
            field=models.DateTimeField(
                db_index=True,
                default=django.utils.timezone.now,
                help_text='Alta del usuario',
            ),
        ),
    ]
