"""
Management command to download canonical chapter text to JSON files.

Usage:
    python manage.py fetch_scripture gal 1 6
    python manage.py fetch_scripture rom 10 --output data/bible
"""
import json
import time
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from apps.reading.services.scripture import BOOK_INDEX, fetch_chapter


class Command(BaseCommand):
    help = 'Fetch canonical verse text for a range of chapters and save it as JSON'

    def add_arguments(self, parser):
        parser.add_argument('book', help='3-letter book code (e.g. rom, co1)')
        parser.add_argument('start', type=int, help='First chapter')
        parser.add_argument('end', type=int, nargs='?', help='Last chapter (defaults to start)')
        parser.add_argument('--output', default='data/bible', help='Output directory')
        parser.add_argument('--delay', type=float, default=0.5, help='Seconds to wait between requests')

    def handle(self, *args, **options):
        book = options['book'].lower()
        if book not in BOOK_INDEX:
            raise CommandError(f"Unknown book code: {book}")

        start = options['start']
        end = options['end'] or start
        if end < start:
            raise CommandError('End chapter must not be before start chapter')

        output_dir = Path(options['output'])
        output_dir.mkdir(parents=True, exist_ok=True)

        saved = 0
        for chapter in range(start, end + 1):
            verses = fetch_chapter(book, chapter)
            if not verses:
                self.stdout.write(self.style.WARNING(f"  {book} {chapter}: no verses found"))
                continue

            path = output_dir / f"{book}_{chapter}.json"
            path.write_text(
                json.dumps({'book': book, 'chapter': chapter, 'verses': verses}, ensure_ascii=False, indent=2),
                encoding='utf-8',
            )
            saved += 1
            self.stdout.write(f"  {book} {chapter}: {len(verses)} verses -> {path}")

            if chapter < end and options['delay']:
                time.sleep(options['delay'])

        self.stdout.write(self.style.SUCCESS(f"\nSaved {saved} of {end - start + 1} chapters"))
