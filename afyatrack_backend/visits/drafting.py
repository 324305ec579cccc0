"""Clinical note drafting through an OpenAI-compatible chat-completions API.

The provider (Groq by default) receives the consultation transcript and
returns a JSON object with the four SOAP sections. Provider errors are
translated into ``NoteDraftingError`` subclasses; nothing is retried here.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

import openai
from django.conf import settings

from afyatrack_backend.core.exceptions import AfyaTrackError, InvalidInput

logger = logging.getLogger(__name__)

SOAP_SECTIONS = ('subjective', 'objective', 'assessment', 'plan')

SYSTEM_PROMPT = """You are a medical assistant helping to document patient consultations.
Convert the consultation transcript into structured SOAP notes (Subjective, Objective, Assessment, Plan).

IMPORTANT INSTRUCTIONS:
- Extract information accurately from the transcript
- Use clear, professional medical language
- Support both English and Kiswahili content
- If information is missing for a section, write "Not documented" instead of leaving it empty
- Be concise but comprehensive
- Include relevant vital signs, symptoms, diagnoses, and treatment plans

Return ONLY a valid JSON object with this exact structure:
{
  "subjective": "Patient's complaints, symptoms, and history",
  "objective": "Physical examination findings, vital signs, test results",
  "assessment": "Diagnosis, clinical impression, differential diagnoses",
  "plan": "Treatment plan, medications, follow-up instructions"
}"""


# -----------------------------------------------------------------------------
# Errors
# -----------------------------------------------------------------------------


class NoteDraftingError(AfyaTrackError):
    """The drafting provider could not produce a note."""

    status_code = 502
    default_code = 'note_drafting_failed'
    default_detail = 'Failed to generate clinical notes.'


class RateLimited(NoteDraftingError):
    status_code = 429
    default_code = 'note_drafting_rate_limited'
    default_detail = 'AI service rate limit exceeded. Please try again later.'


class AuthFailed(NoteDraftingError):
    default_code = 'note_drafting_auth_failed'
    default_detail = 'AI service authentication failed.'


class Incomplete(NoteDraftingError):
    default_code = 'note_drafting_incomplete'
    default_detail = 'AI generated incomplete SOAP notes.'


@dataclass(frozen=True)
class SoapNote:
    subjective: str
    objective: str
    assessment: str
    plan: str

    def to_dict(self) -> dict[str, str]:
        return {section: getattr(self, section) for section in SOAP_SECTIONS}


def _config() -> dict:
    return getattr(settings, 'NOTE_DRAFTING', {})


def build_client(config: dict | None = None) -> openai.OpenAI:
    """Client for the configured provider. Built per call, never cached."""
    config = config or _config()
    return openai.OpenAI(
        api_key=config.get('API_KEY') or None,
        base_url=config.get('BASE_URL') or None,
        timeout=config.get('TIMEOUT', 30),
        max_retries=0,
    )


def parse_soap_note(content: str | None) -> SoapNote:
    """Parse the provider's JSON reply. Raises Incomplete if any section is missing."""
    if not content:
        raise Incomplete('AI service returned an empty response.')
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as exc:
        raise Incomplete('AI service returned malformed JSON.') from exc
    if not isinstance(payload, dict):
        raise Incomplete('AI service returned malformed JSON.')

    sections = {}
    for section in SOAP_SECTIONS:
        value = payload.get(section)
        if not isinstance(value, str) or not value.strip():
            raise Incomplete(missing=section)
        sections[section] = value.strip()
    return SoapNote(**sections)


def draft_soap_note(transcript: str, client: openai.OpenAI | None = None) -> SoapNote:
    """Draft a SOAP note from a consultation transcript."""
    if not transcript or not transcript.strip():
        raise InvalidInput('Transcript is required to generate clinical notes.', code='transcript_required')

    config = _config()
    if client is None:
        if not config.get('API_KEY'):
            raise AuthFailed('AI service is not configured.', code='note_drafting_not_configured')
        client = build_client(config)

    logger.info('Requesting SOAP draft (transcript_length=%s)', len(transcript))
    try:
        completion = client.chat.completions.create(
            model=config.get('MODEL', 'llama-3.1-70b-versatile'),
            messages=[
                {'role': 'system', 'content': SYSTEM_PROMPT},
                {
                    'role': 'user',
                    'content': f'Generate SOAP notes from this consultation transcript:\n\n{transcript}',
                },
            ],
            temperature=config.get('TEMPERATURE', 0.3),
            max_tokens=config.get('MAX_TOKENS', 2000),
            response_format={'type': 'json_object'},
        )
    except openai.RateLimitError as exc:
        logger.warning('Note drafting rate limited by provider')
        raise RateLimited() from exc
    except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
        logger.error('Note drafting provider rejected the API key')
        raise AuthFailed() from exc
    except openai.OpenAIError as exc:
        logger.exception('Note drafting request failed')
        raise NoteDraftingError() from exc

    content = completion.choices[0].message.content if completion.choices else None
    note = parse_soap_note(content)

    usage = getattr(completion, 'usage', None)
    logger.info('SOAP draft received (tokens=%s)', getattr(usage, 'total_tokens', 0) if usage else 0)
    return note
