"""
Management command to print the reading plan.

Usage:
    python manage.py show_schedule
    python manage.py show_schedule --lang ko --date 2025-03-01
"""
from datetime import date

from django.core.management.base import BaseCommand, CommandError

from apps.reading.services.schedule import LANGUAGES, get_default_day, get_full_schedule, get_plan_config


class Command(BaseCommand):
    help = 'Print the full reading schedule and the plan day for a date'

    def add_arguments(self, parser):
        parser.add_argument('--lang', default='en', choices=LANGUAGES, help='Language for book names')
        parser.add_argument('--date', help='YYYY-MM-DD (defaults to today)')

    def handle(self, *args, **options):
        config = get_plan_config()

        for_date = None
        if options['date']:
            try:
                for_date = date.fromisoformat(options['date'])
            except ValueError:
                raise CommandError(f"Invalid date: {options['date']}")

        current_day = get_default_day(for_date, config=config)

        self.stdout.write(f"\n=== Reading Plan ({config.total_days} days, anchored {config.anchor}) ===\n")
        for item in get_full_schedule(options['lang'], config=config):
            line = f"Day {item['day']:>3}: {item['reading']}"
            if item['day'] == current_day:
                self.stdout.write(self.style.SUCCESS(f"{line}  <- today"))
            else:
                self.stdout.write(line)
