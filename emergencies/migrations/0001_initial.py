import django.db.models.deletion
import donors.validators
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('donors', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Emergency',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('blood_group', models.CharField(choices=[('O-', 'O-'), ('O+', 'O+'), ('A-', 'A-'), ('A+', 'A+'), ('B-', 'B-'), ('B+', 'B+'), ('AB-', 'AB-'), ('AB+', 'AB+')], db_index=True, max_length=3)),
                ('units_needed', models.PositiveIntegerField(default=1)),
                ('hospital', models.CharField(max_length=200)),
                ('city', models.CharField(db_index=True, max_length=100)),
                ('contact_name', models.CharField(max_length=200)),
                ('contact_phone', models.CharField(max_length=15, validators=[donors.validators.validate_indian_phone])),
                ('urgency', models.CharField(choices=[('critical', 'Critical - Needed within hours'), ('urgent', 'Urgent - Within 24 Hours'), ('standard', 'Standard - Within a few days')], default='urgent', max_length=10)),
                ('notes', models.TextField(blank=True)),
                ('patient_name', models.CharField(blank=True, max_length=200)),
                ('status', models.CharField(choices=[('active', 'Active'), ('fulfilled', 'Fulfilled'), ('cancelled', 'Cancelled'), ('expired', 'Expired')], default='active', max_length=10)),
                ('active', models.BooleanField(db_index=True, default=True)),
                ('status_notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('expires_at', models.DateTimeField(blank=True, null=True)),
                ('view_count', models.PositiveIntegerField(default=0)),
                ('response_count', models.PositiveIntegerField(default=0)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='emergencies', to=settings.AUTH_USER_MODEL)),
                ('notified_donors', models.ManyToManyField(blank=True, related_name='emergency_notifications', to='donors.donor')),
            ],
            options={
                'verbose_name': 'Emergency',
                'verbose_name_plural': 'Emergencies',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='EmergencyResponse',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('response_type', models.CharField(choices=[('clicked', 'Clicked'), ('called', 'Called'), ('messaged', 'Messaged')], default='clicked', max_length=10)),
                ('timestamp', models.DateTimeField(auto_now_add=True)),
                ('donor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='emergency_responses', to='donors.donor')),
                ('emergency', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='responses', to='emergencies.emergency')),
            ],
            options={
                'ordering': ['-timestamp'],
            },
        ),
    ]
