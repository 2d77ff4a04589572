from unittest import mock

import pytest
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from apps.reading.models import ArchivedReading, MeditationLog, MeditationStatus
from apps.reading.services.generation import GenerationError

from .conftest import FakeGenerator


pytestmark = pytest.mark.django_db


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def fake_generator():
    generator = FakeGenerator()
    with mock.patch('api.v1.reading.views.get_generation_client', return_value=generator), \
            mock.patch('api.v1.reading.views.fetch_chapter', return_value=[]):
        yield generator


def url(name, **kwargs):
    return reverse(f"api:v1:{name}", kwargs=kwargs or None)


class TestSchedule:

    def test_full_schedule(self, api_client):
        response = api_client.get(url('schedule'), {'lang': 'en'})
        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_days'] == 44
        assert len(response.data['items']) == 44
        assert response.data['items'][0] == {'day': 1, 'reading': 'Galatians 1-2'}
        assert 1 <= response.data['default_day'] <= 44

    def test_defaults_to_korean(self, api_client):
        response = api_client.get(url('schedule'))
        assert response.data['items'][0]['reading'] == '갈라디아서 1-2장'

    def test_rejects_unknown_language(self, api_client):
        response = api_client.get(url('schedule'), {'lang': 'fr'})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_day_detail(self, api_client):
        response = api_client.get(url('day', day=27), {'lang': 'en'})
        assert response.data['reference'] == 'Romans 10-11'
        assert response.data['readings'] == [{'book': 'Romans', 'chapter': 10}, {'book': 'Romans', 'chapter': 11}]
        assert response.data['status'] is None
        assert response.data['is_archived'] is False

    def test_day_zero(self, api_client):
        response = api_client.get(url('day', day=0))
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_days_past_the_plan_wrap(self, api_client):
        first = api_client.get(url('day', day=1), {'lang': 'en'})
        wrapped = api_client.get(url('day', day=45), {'lang': 'en'})
        assert wrapped.data['reference'] == first.data['reference']


class TestContent:

    def test_generates_then_serves_from_cache(self, api_client, fake_generator):
        response = api_client.get(url('day_content', day=1), {'lang': 'en'})
        assert response.status_code == status.HTTP_200_OK
        assert response.data['cached'] is False
        assert response.data['reference'] == 'Galatians 1-2'
        assert response.data['guide_text'] == 'Reflect on grace.'

        response = api_client.get(url('day_content', day=1), {'lang': 'en'})
        assert response.data['cached'] is True
        assert len(fake_generator.content_calls) == 1

    def test_cache_is_per_client(self, fake_generator):
        APIClient().get(url('day_content', day=1), {'lang': 'en'})
        response = APIClient().get(url('day_content', day=1), {'lang': 'en'})
        assert response.data['cached'] is False
        assert len(fake_generator.content_calls) == 2

    def test_token_clients_share_the_account_cache(self, user, fake_generator):
        login = APIClient().post(url('login'), {'username': 'reader', 'password': 'testpass123'}, format='json')
        token = login.data['access']

        responses = []
        for _ in range(2):
            client = APIClient()
            client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
            responses.append(client.get(url('day_content', day=1), {'lang': 'en'}))

        assert [r.data['cached'] for r in responses] == [False, True]
        assert len(fake_generator.content_calls) == 1

    def test_quota_error(self, api_client, fake_generator):
        fake_generator.error = GenerationError('Gemini API error 429: RESOURCE_EXHAUSTED', status_code=429)
        response = api_client.get(url('day_content', day=2), {'lang': 'en'})
        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert response.data['code'] == 'api_quota_exceeded'

    def test_content_error(self, api_client, fake_generator):
        fake_generator.error = GenerationError('Failed to get data from API.')
        response = api_client.get(url('day_content', day=2), {'lang': 'en'})
        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.data['code'] == 'content_error'


class TestProgressAnonymous:

    def test_complete_requires_loaded_content(self, api_client, fake_generator):
        response = api_client.post(url('day_complete', day=3), {'lang': 'en'}, format='json')
        assert response.status_code == status.HTTP_409_CONFLICT

    def test_complete_day(self, api_client, fake_generator):
        api_client.get(url('day_content', day=3), {'lang': 'en'})

        response = api_client.post(url('day_complete', day=3), {'lang': 'en'}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == 'good'
        assert response.data['archived']['reading_reference'] == 'Galatians 5-6'

        detail = api_client.get(url('day', day=3), {'lang': 'en'})
        assert detail.data['status'] == 'good'
        assert detail.data['is_archived'] is True
        assert list(api_client.get(url('archive')).data['archive']) == [3]
        assert ArchivedReading.objects.count() == 0

    def test_toggle(self, api_client):
        response = api_client.post(url('status_toggle', day=4), {'rating': 'ok'}, format='json')
        assert response.data == {'day': 4, 'rating': 'ok', 'status': {4: 'ok'}}

        response = api_client.post(url('status_toggle', day=4), {'rating': 'ok'}, format='json')
        assert response.data['rating'] is None
        assert api_client.get(url('status')).data == {'status': {}}

    def test_toggle_rejects_unknown_rating(self, api_client):
        response = api_client.post(url('status_toggle', day=4), {'rating': 'great'}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_replace_status(self, api_client):
        response = api_client.put(url('status'), {'status': {'1': 'good', '2': 'bad'}}, format='json')
        assert response.status_code == status.HTTP_200_OK
        assert api_client.get(url('status')).data['status'] == {1: 'good', 2: 'bad'}

    def test_replace_status_rejects_bad_day(self, api_client):
        response = api_client.put(url('status'), {'status': {'zero': 'good'}}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_entries_round_trip(self, api_client):
        entries = [{'id': 2, 'timestamp': '10:00 AM', 'content': 'second'},
                   {'id': 1, 'timestamp': '09:00 AM', 'content': 'first'}]
        response = api_client.put(url('entries', kind='diary', storage_key='diary-day-1'), {'entries': entries}, format='json')
        assert response.status_code == status.HTTP_200_OK

        response = api_client.get(url('entries', kind='diary', storage_key='diary-day-1'))
        assert response.data['entries'] == entries

    def test_entries_reject_reserved_keys(self, api_client):
        for key in ('meditation-status', 'archived-readings', 'reading-cache-day-1-ko'):
            response = api_client.get(url('entries', kind='diary', storage_key=key))
            assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_entries_unknown_kind(self, api_client):
        response = api_client.get(url('entries', kind='notes', storage_key='x'))
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestProgressSignedIn:

    def test_status_saved_to_account(self, api_client, user):
        api_client.force_authenticate(user=user)
        api_client.post(url('status_toggle', day=9), {'rating': 'good'}, format='json')
        assert MeditationStatus.objects.get(user=user).status_record == {'9': 'good'}

    def test_status_follows_the_account(self, user):
        first = APIClient()
        first.force_authenticate(user=user)
        first.post(url('status_toggle', day=9), {'rating': 'bad'}, format='json')

        second = APIClient()
        second.force_authenticate(user=user)
        assert second.get(url('status')).data['status'] == {9: 'bad'}

    def test_complete_day_archives_to_account(self, api_client, user, fake_generator):
        api_client.force_authenticate(user=user)
        api_client.get(url('day_content', day=5), {'lang': 'en'})
        api_client.post(url('day_complete', day=5), {'lang': 'en'}, format='json')

        archived = ArchivedReading.objects.get(user=user, day=5)
        assert archived.content['guide_text'] == 'Reflect on grace.'
        assert MeditationStatus.objects.get(user=user).status_record == {'5': 'good'}

    def test_diary_appends_newest(self, api_client, user):
        api_client.force_authenticate(user=user)
        entries = [{'id': 2, 'timestamp': '', 'content': 'second'}, {'id': 1, 'timestamp': '', 'content': 'first'}]
        api_client.put(url('entries', kind='diary', storage_key='diary-day-1'), {'entries': entries}, format='json')

        assert list(MeditationLog.objects.values_list('content', flat=True)) == ['second']
        response = api_client.get(url('entries', kind='diary', storage_key='diary-day-1'))
        assert [entry['content'] for entry in response.data['entries']] == ['second']


class TestImages:

    def test_header_image_generated_once(self, api_client, fake_generator):
        first = api_client.get(url('header_image'))
        second = api_client.get(url('header_image'))
        assert first.data['image_ref'] == 'data:image/png;base64,AAAA'
        assert second.data == first.data
        assert len(fake_generator.image_calls) == 1

    def test_journey_map(self, api_client, fake_generator):
        payload = {'lang': 'en', 'title': 'First missionary journey', 'cities': ['Antioch', 'Cyprus', 'Perga']}
        response = api_client.post(url('journey_map', journey_id=1), payload, format='json')
        assert response.data['image_ref'] == 'data:image/png;base64,AAAA'
        assert 'Antioch -> Cyprus -> Perga' in fake_generator.image_calls[0][0]

    def test_journey_map_requires_cities(self, api_client, fake_generator):
        response = api_client.post(url('journey_map', journey_id=1), {'title': 'x', 'cities': []}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestAuth:

    def test_login_and_me(self, api_client, user):
        response = api_client.post(url('login'), {'username': 'reader', 'password': 'testpass123'}, format='json')
        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data and 'refresh' in response.data

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        me = api_client.get(url('current_user'))
        assert me.data['username'] == 'reader'
        assert me.data['progress'] == {'rated_days': 0, 'archived_days': 0}

    def test_me_counts_saved_progress(self, api_client, user):
        MeditationStatus.objects.create(user=user, status_record={'1': 'good', '2': 'ok'})
        api_client.force_authenticate(user=user)
        assert api_client.get(url('current_user')).data['progress'] == {'rated_days': 2, 'archived_days': 0}

    def test_me_requires_auth(self, api_client):
        assert api_client.get(url('current_user')).status_code == status.HTTP_401_UNAUTHORIZED
