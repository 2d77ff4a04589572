from datetime import date

import pytest

from apps.reading.services.local_store import MemoryLocalStore
from apps.reading.services.schedule import PlanConfig, build_corpus


class FakeGenerator:
    """Stands in for the Gemini client and records every call."""

    def __init__(self, seed='a harbor at dawn', image='data:image/png;base64,AAAA', error=None):
        self.seed = seed
        self.image = image
        self.error = error
        self.content_calls = []
        self.image_calls = []

    def generate_reading_content(self, work, chapter_start, chapter_end, language):
        self.content_calls.append((work, chapter_start, chapter_end, language))
        if self.error:
            raise self.error
        return {
            'passage': f"1. Generated {work} {chapter_start}-{chapter_end}",
            'guide_text': 'Reflect on grace.',
            'context_text': 'Written to the churches of Galatia.',
            'intention_text': 'To defend the gospel of grace.',
            'image_prompt_seed': self.seed,
        }

    def generate_context_image(self, seed, language, fallback_context=''):
        self.image_calls.append((seed, language, fallback_context))
        return self.image

    def generate_image(self, prompt):
        self.image_calls.append((prompt,))
        return self.image


@pytest.fixture
def plan_config():
    return PlanConfig(anchor=date(2025, 1, 1), corpus=build_corpus())


@pytest.fixture
def store():
    return MemoryLocalStore()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def user(django_user_model):
    return django_user_model.objects.create_user(username='reader', password='testpass123')


@pytest.fixture
def other_user(django_user_model):
    return django_user_model.objects.create_user(username='other', password='testpass123')
