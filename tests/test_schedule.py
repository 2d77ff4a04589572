from datetime import date, datetime, timedelta

import pytest

from apps.reading.services.schedule import (
    PAULINE_EPISTLES,
    PlanConfig,
    Reading,
    build_corpus,
    day_number_for_date,
    format_reading,
    full_schedule,
    get_default_day,
    get_full_schedule,
    get_reading_for_day,
    localize,
    reading_for_day,
    total_days_for,
)


class TestBuildCorpus:

    def test_one_unit_per_chapter(self):
        corpus = build_corpus()
        assert [count for _, _, count in PAULINE_EPISTLES] == [6, 5, 3, 16, 13, 16, 4, 1, 6, 4, 6, 3, 4]
        assert len(corpus) == 87
        assert total_days_for(corpus) == 44

    def test_preserves_work_and_chapter_order(self):
        corpus = build_corpus()
        assert corpus[0].book_name('en') == 'Galatians'
        assert corpus[0].chapter == 1
        assert corpus[5].chapter == 6
        assert corpus[6].book_name('en') == '1 Thessalonians'
        assert corpus[6].chapter == 1
        assert corpus[86].book_name('en') == '2 Timothy'
        assert corpus[86].chapter == 4

    def test_same_structure_in_every_language(self):
        corpus = build_corpus()
        ko = [(u.code, u.chapter) for u in corpus if u.book_name('ko')]
        en = [(u.code, u.chapter) for u in corpus if u.book_name('en')]
        assert ko == en
        assert corpus[0].book_name('ko') == '갈라디아서'

    def test_unknown_language(self):
        with pytest.raises(ValueError):
            build_corpus()[0].book_name('fr')


class TestReadingForDay:

    def test_day_one(self):
        corpus = build_corpus()
        assert reading_for_day(1, corpus) == (corpus[0], corpus[1])

    def test_last_day_wraps_to_first_unit(self):
        corpus = build_corpus()
        assert reading_for_day(44, corpus) == (corpus[86], corpus[0])

    def test_cyclic(self):
        corpus = build_corpus()
        total = total_days_for(corpus)
        for day in (1, 2, 17, 43, 44):
            assert reading_for_day(day, corpus) == reading_for_day(day + total, corpus)
            assert reading_for_day(day, corpus) == reading_for_day(day + 3 * total, corpus)

    def test_never_raises_for_large_days(self):
        corpus = build_corpus()
        for day in (45, 88, 1000, 123456):
            first, second = reading_for_day(day, corpus)
            assert first in corpus and second in corpus

    def test_localized_reading(self, plan_config):
        assert get_reading_for_day(1, 'en', plan_config) == (Reading('Galatians', 1), Reading('Galatians', 2))
        assert get_reading_for_day(27, 'en', plan_config) == (Reading('Romans', 10), Reading('Romans', 11))


class TestFormatting:

    def test_same_book_collapses(self):
        reading = (Reading('Romans', 10), Reading('Romans', 11))
        assert format_reading(reading, 'en') == 'Romans 10-11'
        assert format_reading((Reading('로마서', 10), Reading('로마서', 11)), 'ko') == '로마서 10-11장'

    def test_different_books_join(self):
        reading = (Reading('Galatians', 6), Reading('1 Thessalonians', 1))
        assert format_reading(reading, 'en') == 'Galatians 6 & 1 Thessalonians 1'
        reading = (Reading('갈라디아서', 6), Reading('데살로니가전서', 1))
        assert format_reading(reading, 'ko') == '갈라디아서 6장 & 데살로니가전서 1장'


class TestFullSchedule:

    def test_covers_every_day_once(self, plan_config):
        schedule = get_full_schedule('en', plan_config)
        assert [item['day'] for item in schedule] == list(range(1, 45))

    @pytest.mark.parametrize('language', ['en', 'ko'])
    def test_matches_reading_for_day(self, language):
        corpus = build_corpus()
        for item in full_schedule(corpus, language):
            reading = localize(reading_for_day(item['day'], corpus), language)
            assert item['reading'] == format_reading(reading, language)

    def test_known_entries(self):
        schedule = full_schedule(build_corpus(), 'en')
        assert schedule[0]['reading'] == 'Galatians 1-2'
        assert schedule[2]['reading'] == 'Galatians 5-6'
        assert schedule[43]['reading'] == '2 Timothy 4 & Galatians 1'


class TestDayNumber:

    def test_anchor_is_day_one(self):
        anchor = date(2025, 1, 1)
        assert day_number_for_date(anchor, anchor, 44) == 1
        assert day_number_for_date(anchor + timedelta(days=26), anchor, 44) == 27

    def test_dates_before_anchor_clamp_to_day_one(self):
        anchor = date(2025, 1, 1)
        assert day_number_for_date(anchor - timedelta(days=1), anchor, 44) == 1
        assert day_number_for_date(anchor - timedelta(days=400), anchor, 44) == 1

    def test_wraps_after_a_cycle(self):
        anchor = date(2025, 1, 1)
        assert day_number_for_date(anchor + timedelta(days=43), anchor, 44) == 44
        assert day_number_for_date(anchor + timedelta(days=44), anchor, 44) == 1

    def test_always_in_range_and_steps_by_one(self):
        anchor = date(2025, 1, 1)
        previous = None
        for offset in range(-10, 200):
            day = day_number_for_date(anchor + timedelta(days=offset), anchor, 44)
            assert 1 <= day <= 44
            if previous is not None and offset > 0:
                assert day == previous + 1 or (previous == 44 and day == 1)
            previous = day

    def test_accepts_datetime(self):
        anchor = date(2025, 1, 1)
        assert day_number_for_date(datetime(2025, 1, 3, 23, 59), anchor, 44) == 3

    def test_default_day_uses_config(self, plan_config):
        assert get_default_day(date(2025, 1, 27), config=plan_config) == 27
        assert get_default_day(datetime(2025, 2, 14, 8, 0), config=plan_config) == 1

    def test_custom_corpus(self):
        config = PlanConfig(anchor=date(2025, 1, 1), corpus=build_corpus([({'ko': '디도서', 'en': 'Titus'}, 'tit', 3)]))
        assert config.total_days == 2
        assert get_default_day(date(2025, 1, 3), config=config) == 1
        assert get_reading_for_day(2, 'en', config) == (Reading('Titus', 3), Reading('Titus', 1))
