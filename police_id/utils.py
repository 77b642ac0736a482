import requests
from flask import current_app

# Latin spelling of each Ethiopic consonant row (U+1200, U+1208, ... U+1350)
_ETHIOPIC_CONSONANTS = (
    'h', 'l', 'h', 'm', 's', 'r', 's', 'sh',
    'q', 'q', 'q', 'q', 'b', 'v', 't', 'ch',
    'h', 'h', 'n', 'ny', '', 'k', 'k', 'kh',
    'kh', 'w', '', 'z', 'zh', 'y', 'd', 'd',
    'j', 'g', 'g', 'g', 't', 'ch', 'p', 'ts',
    'ts', 'f', 'p',
)
# Vowel of each of the eight orders within a row
_ETHIOPIC_VOWELS = ('e', 'u', 'i', 'a', 'e', '', 'o', 'wa')
_ETHIOPIC_START = 0x1200
_ETHIOPIC_END = _ETHIOPIC_START + len(_ETHIOPIC_CONSONANTS) * 8


def transliterate(text):
    """Spell Ethiopic syllables in Latin letters; other characters pass through"""
    out = []
    for char in text:
        code = ord(char)
        if _ETHIOPIC_START <= code < _ETHIOPIC_END:
            row, order = divmod(code - _ETHIOPIC_START, 8)
            out.append(_ETHIOPIC_CONSONANTS[row] + _ETHIOPIC_VOWELS[order])
        else:
            out.append(char)
    return ''.join(out)


def name_sort_key(name):
    """Collation key for member names: አበበ (ebebe) sorts before ለምለም (lemlem)"""
    name = (name or '').strip()
    return (transliterate(name).casefold(), name)


class TranslationService:
    """Fills the missing side of Amharic/English field pairs using Gemini"""

    API_URL = 'https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent'

    def __init__(self, api_key=None, model=None, timeout=15):
        self.api_key = api_key
        self.model = model or 'gemini-2.0-flash'
        self.timeout = timeout

    @property
    def enabled(self):
        return bool(self.api_key)

    def translate_text(self, text, target_lang):
        """Translate `text` to 'en' or 'am'. Falls back to the source text on any failure."""
        if not text:
            return ''

        if not self.enabled:
            current_app.logger.warning("GEMINI_API_KEY is not set. Translation is disabled.")
            return text

        if target_lang == 'en':
            prompt = f'Translate the following Amharic text to English. Return ONLY the translated text: "{text}"'
        else:
            prompt = f'Translate the following English text to Amharic. Return ONLY the translated text: "{text}"'

        try:
            response = requests.post(
                self.API_URL.format(model=self.model),
                headers={'x-goog-api-key': self.api_key},
                json={'contents': [{'parts': [{'text': prompt}]}]},
                timeout=self.timeout,
            )
            response.raise_for_status()
            parts = response.json()['candidates'][0]['content']['parts']
            translated = ''.join(part.get('text', '') for part in parts).strip()
            return translated or text
        except (requests.RequestException, KeyError, IndexError, ValueError) as e:
            current_app.logger.error(f"Translation error: {e}")
            return text

    def fill_bilingual_fields(self, data, fields):
        """Complete each `<field>_am` / `<field>_en` pair that has exactly one side"""
        result = dict(data)
        for field in fields:
            am_key, en_key = f'{field}_am', f'{field}_en'
            if result.get(am_key) and not result.get(en_key):
                result[en_key] = self.translate_text(result[am_key], 'en')
            elif result.get(en_key) and not result.get(am_key):
                result[am_key] = self.translate_text(result[en_key], 'am')
        return result


def get_translation_service():
    """Get the translation service for the current app"""
    service = current_app.extensions.get('translation_service')
    if service is None:
        service = TranslationService(
            api_key=current_app.config.get('GEMINI_API_KEY'),
            model=current_app.config.get('GEMINI_MODEL'),
        )
        current_app.extensions['translation_service'] = service
    return service
