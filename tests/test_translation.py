import requests

from police_id import utils
from police_id.utils import TranslationService


class FakeResponse:

    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f'{self.status_code} error')

    def json(self):
        return self.payload


def gemini_reply(text):
    return {'candidates': [{'content': {'parts': [{'text': text}]}}]}


def test_translates_missing_english_side(app, monkeypatch):
    calls = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append((url, headers, json))
        return FakeResponse(gemini_reply(' Abebe Kebede \n'))

    monkeypatch.setattr(utils.requests, 'post', fake_post)
    service = TranslationService(api_key='test-key', model='gemini-test')

    with app.app_context():
        result = service.fill_bilingual_fields(
            {'full_name_am': 'አበበ ከበደ', 'full_name_en': None, 'rank_am': 'ሳጅን', 'rank_en': 'Sergeant'},
            ('full_name', 'rank'),
        )

    assert result['full_name_en'] == 'Abebe Kebede'
    assert result['rank_en'] == 'Sergeant'
    assert len(calls) == 1
    url, headers, body = calls[0]
    assert 'gemini-test:generateContent' in url
    assert headers == {'x-goog-api-key': 'test-key'}
    assert 'አበበ ከበደ' in body['contents'][0]['parts'][0]['text']


def test_falls_back_to_source_text_on_http_error(app, monkeypatch):
    monkeypatch.setattr(utils.requests, 'post', lambda *a, **kw: FakeResponse({}, status_code=503))
    service = TranslationService(api_key='test-key')

    with app.app_context():
        assert service.translate_text('Inspector', 'am') == 'Inspector'


def test_falls_back_on_network_failure(app, monkeypatch):
    def unreachable(*args, **kwargs):
        raise requests.ConnectionError('no route')

    monkeypatch.setattr(utils.requests, 'post', unreachable)
    service = TranslationService(api_key='test-key')

    with app.app_context():
        assert service.translate_text('ኮማንደር', 'en') == 'ኮማንደር'


def test_disabled_without_api_key(app):
    with app.app_context():
        service = utils.get_translation_service()
        assert not service.enabled
        assert service.translate_text('', 'en') == ''
        assert service.translate_text('Officer', 'am') == 'Officer'
