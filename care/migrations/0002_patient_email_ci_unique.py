import django.db.models.functions.text
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('care', '0001_initial'),
    ]

    operations = [
        migrations.AddConstraint(
            model_name='patient',
            constraint=models.UniqueConstraint(
                django.db.models.functions.text.Lower('email'), name='uniq_patient_email_ci'
            ),
        ),
    ]
