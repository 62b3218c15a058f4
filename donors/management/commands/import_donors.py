# donors/management/commands/import_donors.py
"""
Django management command to import donor data from CSV or Excel
Usage: python manage.py import_donors path/to/donors.xlsx [--dry-run]
"""
import logging
from pathlib import Path

import pandas as pd
from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from donors import services
from donors.models import Donor

logger = logging.getLogger(__name__)

# Accepted spreadsheet headers -> donor field
COLUMN_ALIASES = {
    'name': 'name',
    'full_name': 'name',
    'blood_group': 'blood_group',
    'blood_type': 'blood_group',
    'phone': 'phone',
    'phone_number': 'phone',
    'whatsapp': 'whatsapp',
    'city': 'city',
    'latitude': 'latitude',
    'longitude': 'longitude',
    'last_donation_date': 'last_donation_date',
    'is_available': 'is_available',
}

TRUE_VALUES = {'1', 'true', 'yes', 'y'}


def read_table(path):
    """Load a CSV or Excel sheet as strings, empty cells as NaN."""
    suffix = Path(path).suffix.lower()
    if suffix == '.csv':
        return pd.read_csv(path, dtype=str)
    if suffix in ('.xlsx', '.xls'):
        return pd.read_excel(path, dtype=str)
    raise CommandError(f'Unsupported file type: {suffix or path}')


def clean_row(row):
    """
    Map one spreadsheet row onto donor fields.

    Returns:
        dict of field -> value with blank cells dropped
    """
    data = {}
    for column, value in row.items():
        field = COLUMN_ALIASES.get(str(column).strip().lower())
        if field is None or field in data or pd.isna(value):
            continue
        value = str(value).strip()
        if value:
            data[field] = value

    for field in ('latitude', 'longitude'):
        if field in data:
            try:
                data[field] = float(data[field])
            except ValueError:
                data.pop(field)

    if 'is_available' in data:
        data['is_available'] = data['is_available'].lower() in TRUE_VALUES

    # Excel stores long numbers as floats
    for field in ('phone', 'whatsapp'):
        if field in data and data[field].endswith('.0'):
            data[field] = data[field][:-2]

    return data


class Command(BaseCommand):
    help = 'Import donors from a CSV or Excel file'

    def add_arguments(self, parser):
        parser.add_argument('file', type=str, help='Path to the CSV or Excel file')
        parser.add_argument('--dry-run', action='store_true', help='Validate rows without saving')

    def handle(self, *args, **options):
        path = options['file']
        dry_run = options['dry_run']

        self.stdout.write(self.style.WARNING(f'Starting import from {path}...'))

        try:
            df = read_table(path)
        except FileNotFoundError:
            raise CommandError(f'File not found: {path}')

        self.stdout.write(f'Found {len(df)} rows')

        created_count = 0
        updated_count = 0
        skipped_count = 0

        with transaction.atomic():
            for index, row in df.iterrows():
                line = index + 2  # header is line 1
                data = clean_row(row)

                phone = data.get('phone')
                existing = Donor.objects.filter(phone=phone).first() if phone else None
                try:
                    if existing is not None:
                        changes = {k: v for k, v in data.items() if k in services.EDITABLE_FIELDS}
                        services.update_donor(existing, **changes)
                        updated_count += 1
                        self.stdout.write(f'↻ Updated: {existing}')
                    else:
                        donor = services.create_donor(data)
                        created_count += 1
                        self.stdout.write(f'✓ Created: {donor}')
                except ValidationError as e:
                    skipped_count += 1
                    logger.warning(f"Import row {line} skipped: {e.messages}")
                    self.stdout.write(self.style.ERROR(f'✗ Skipping row {line}: {"; ".join(e.messages)}'))

            if dry_run:
                transaction.set_rollback(True)

        self.stdout.write(
            self.style.SUCCESS(
                f'\nImport {"checked" if dry_run else "complete"}!\n'
                f'Created: {created_count}\n'
                f'Updated: {updated_count}\n'
                f'Skipped: {skipped_count}'
            )
        )
