import json
from io import StringIO
from unittest import mock

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError


def run(*args, **options):
    out = StringIO()
    call_command(*args, stdout=out, **options)
    return out.getvalue()


class TestShowSchedule:

    def test_prints_every_day(self):
        output = run('show_schedule', lang='en', date='2025-01-27')
        assert 'Day   1: Galatians 1-2' in output
        assert 'Day  44: 2 Timothy 4 & Galatians 1' in output
        assert 'Day  27: Romans 10-11  <- today' in output

    def test_invalid_date(self):
        with pytest.raises(CommandError):
            run('show_schedule', date='not-a-date')


class TestFetchScripture:

    @mock.patch('apps.reading.management.commands.fetch_scripture.fetch_chapter')
    def test_writes_one_file_per_chapter(self, mock_fetch, tmp_path):
        mock_fetch.side_effect = [[{'verse': 1, 'text': '은혜'}], []]

        output = run('fetch_scripture', 'gal', '1', '2', output=str(tmp_path), delay=0)

        data = json.loads((tmp_path / 'gal_1.json').read_text(encoding='utf-8'))
        assert data == {'book': 'gal', 'chapter': 1, 'verses': [{'verse': 1, 'text': '은혜'}]}
        assert not (tmp_path / 'gal_2.json').exists()
        assert 'Saved 1 of 2 chapters' in output

    def test_unknown_book(self, tmp_path):
        with pytest.raises(CommandError):
            run('fetch_scripture', 'xyz', '1', output=str(tmp_path))
