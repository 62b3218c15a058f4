from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('donors', '0002_donationhistory_emergency'),
    ]

    operations = [
        migrations.AddField(
            model_name='donorverification',
            name='otp_attempts',
            field=models.PositiveSmallIntegerField(default=0),
        ),
    ]
