"""
Content generation service using the Gemini REST API.

Produces the daily passage, meditation guide, background context, intention
and an illustration for a reading. Only the request/response boundary lives
here; caching is handled by the content cache.
"""
import json
import logging
import requests
from typing import Dict, List, Optional
from django.conf import settings


logger = logging.getLogger(__name__)

GEMINI_API_URL = 'https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent'

CONTENT_FIELDS = ['passage', 'guide_text', 'context_text', 'intention_text', 'image_prompt_seed']

LANGUAGE_NAMES = {
    'ko': 'Korean',
    'en': 'English',
}

RATE_LIMIT_MARKERS = ('429', 'RESOURCE_EXHAUSTED')


class GenerationError(Exception):
    """Raised when the generation service fails or returns unusable data."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_rate_limited(self):
        if self.status_code == 429:
            return True
        message = str(self)
        return any(marker in message for marker in RATE_LIMIT_MARKERS)


def classify_error(error: Exception) -> str:
    """Return the user-facing error code for a generation failure."""
    if isinstance(error, GenerationError) and error.is_rate_limited:
        return 'api_quota_exceeded'
    if any(marker in str(error) for marker in RATE_LIMIT_MARKERS):
        return 'api_quota_exceeded'
    return 'content_error'


def build_reading_prompt(work: str, chapter_start: int, chapter_end: int, language: str) -> str:
    language_name = LANGUAGE_NAMES.get(language, 'English')
    return (
        f"You are preparing a daily devotional reading of {work} chapters "
        f"{chapter_start} to {chapter_end}. Respond in {language_name} with a JSON object "
        f"containing these string fields:\n"
        f"- passage: the full text of the chapters, one verse per line as \"<number>. <text>\"\n"
        f"- guide_text: a meditation guide with a few reflection questions\n"
        f"- context_text: the historical and literary background of the passage\n"
        f"- intention_text: one or two sentences on why the author wrote this passage\n"
        f"- image_prompt_seed: a short English description of a pencil sketch "
        f"illustrating the setting of the passage, without any text or people's faces"
    )


def build_image_prompt(description: str) -> str:
    return f"A soft pencil sketch illustration, no text or lettering. {description}"


class GeminiClient:
    """
    Thin client over the Gemini generateContent endpoint.

    Raises GenerationError for transport failures, non-200 responses and
    payloads that do not parse.
    """

    def __init__(self, api_key=None, text_model=None, image_model=None, timeout=60):
        self.api_key = api_key if api_key is not None else getattr(settings, 'GEMINI_API_KEY', '')
        self.text_model = text_model or getattr(settings, 'GEMINI_TEXT_MODEL', 'gemini-2.5-flash')
        self.image_model = image_model or getattr(settings, 'GEMINI_IMAGE_MODEL', 'gemini-2.5-flash-image')
        self.timeout = timeout

    def _post(self, model: str, body: Dict) -> Dict:
        if not self.api_key:
            raise GenerationError("Gemini API key not configured")

        url = GEMINI_API_URL.format(model=model)
        headers = {'x-goog-api-key': self.api_key, 'Content-Type': 'application/json'}

        try:
            response = requests.post(url, json=body, headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout:
            raise GenerationError("Gemini API timeout")
        except requests.exceptions.RequestException as e:
            raise GenerationError(f"Gemini API error: {e}")

        if response.status_code != 200:
            try:
                detail = response.json().get('error', {})
                message = f"{detail.get('status', '')} {detail.get('message', '')}".strip()
            except ValueError:
                message = response.text[:200]
            raise GenerationError(
                f"Gemini API error {response.status_code}: {message}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            raise GenerationError("Gemini API returned invalid JSON")

    @staticmethod
    def _parts(data: Dict) -> List[Dict]:
        candidates = data.get('candidates') or []
        if not candidates:
            return []
        return candidates[0].get('content', {}).get('parts', []) or []

    def generate_reading_content(self, work: str, chapter_start: int, chapter_end: int, language: str) -> Dict:
        """
        Generate the text bundle for a reading.

        Returns:
            dict with passage, guide_text, context_text, intention_text,
            image_prompt_seed
        """
        body = {
            'contents': [{'parts': [{'text': build_reading_prompt(work, chapter_start, chapter_end, language)}]}],
            'generationConfig': {'responseMimeType': 'application/json'},
        }
        data = self._post(self.text_model, body)

        text = ''.join(part.get('text', '') for part in self._parts(data))
        if not text:
            raise GenerationError("Failed to get data from API.")

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise GenerationError(f"Could not parse generated content: {e}")

        if not isinstance(payload, dict):
            raise GenerationError("Generated content is not an object")

        return {field: str(payload.get(field) or '') for field in CONTENT_FIELDS}

    def generate_image(self, prompt: str) -> Optional[str]:
        """Generate an image and return it as a data URI, or None if no image came back."""
        body = {
            'contents': [{'parts': [{'text': prompt}]}],
            'generationConfig': {'responseModalities': ['IMAGE']},
        }
        data = self._post(self.image_model, body)

        for part in self._parts(data):
            inline = part.get('inlineData') or part.get('inline_data')
            if inline and inline.get('data'):
                mime_type = inline.get('mimeType') or inline.get('mime_type') or 'image/png'
                return f"data:{mime_type};base64,{inline['data']}"

        logger.warning("Gemini image response contained no image data")
        return None

    def generate_context_image(self, seed: str, language: str, fallback_context: str = '') -> Optional[str]:
        """
        Illustrate a passage from its prompt seed.

        When the seed produces no image, tries once more with the fallback
        context (the passage intention).
        """
        image = self.generate_image(build_image_prompt(seed))
        if image is None and fallback_context:
            logger.info(f"Retrying context image with fallback context ({language})")
            image = self.generate_image(build_image_prompt(fallback_context))
        return image


def get_generation_client() -> GeminiClient:
    return GeminiClient()
