import json
import logging
import re

from anthropic import AsyncAnthropic

from skiptrace.schemas.registry import PersonName

logger = logging.getLogger(__name__)

MODEL = "claude-sonnet-4-20250514"

_JSON_RE = re.compile(r"\{[^{}]*\}")

_PHONE_SYSTEM_PROMPT = (
    "You are an assistant that knows whether a US phone number is wireless "
    '(mobile) or landline. Only answer "W" or "L".'
)
_PHONE_USER_PROMPT = (
    'Is the phone number "{number}" a wireless/mobile or landline number in '
    'the United States? Reply only with "W" for wireless or "L" for landline.'
)

_NAME_SYSTEM_PROMPT = (
    "You are a naming knowledgeable assistant, skilled in finding the first "
    "and last name of a person in a given string. Return ONLY valid JSON."
)
_NAME_USER_PROMPT = (
    "From the following string, extract the first name and last name. No "
    "titles, no special characters. Return a JSON object with exactly the "
    'fields "first_name" and "last_name".\n"{text}"'
)

_PHONE_ANSWERS = {"W": "wireless", "L": "landline"}


class TextClassifier:
    """Two narrow questions answered by Claude. Failures never propagate."""

    def __init__(self, api_key: str):
        self._client = AsyncAnthropic(api_key=api_key) if api_key else None

    async def _ask(self, system_prompt: str, user_prompt: str) -> str | None:
        if self._client is None:
            return None
        try:
            response = await self._client.messages.create(
                model=MODEL,
                max_tokens=64,
                temperature=0,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
            return response.content[0].text
        except Exception:
            logger.exception("Claude API call failed")
            return None

    async def classify_phone_type(self, number: str) -> str:
        """Return "wireless", "landline" or "unknown"."""
        text = await self._ask(_PHONE_SYSTEM_PROMPT, _PHONE_USER_PROMPT.format(number=number))
        answer = (text or "").strip().strip('".').upper()
        return _PHONE_ANSWERS.get(answer, "unknown")

    async def split_person_name(self, text: str) -> PersonName | None:
        answer = await self._ask(_NAME_SYSTEM_PROMPT, _NAME_USER_PROMPT.format(text=text))
        if not answer:
            return None
        name = self._parse_name(answer)
        if name is None:
            logger.warning("Could not parse a name split for %r", text)
        return name

    @classmethod
    def _parse_name(cls, text: str) -> PersonName | None:
        parsed = cls._try_parse_json(text)
        if parsed:
            first = str(parsed.get("first_name") or "").strip()
            last = str(parsed.get("last_name") or "").strip()
            if first or last:
                return PersonName(first_name=first, last_name=last)

        # "First name: Damian" / "LastName: Sagranichne" lines
        first = last = ""
        for line in text.splitlines():
            key, sep, value = line.partition(":")
            if not sep:
                continue
            key = key.strip().lower().replace(" ", "").replace("_", "")
            if key == "firstname":
                first = value.strip()
            elif key == "lastname":
                last = value.strip()
        if first or last:
            return PersonName(first_name=first, last_name=last)
        return None

    @staticmethod
    def _try_parse_json(text: str) -> dict | None:
        # Strip markdown fences
        stripped = re.sub(r"```(?:json)?\s*", "", text).strip().rstrip("`")

        try:
            obj = json.loads(stripped)
            if isinstance(obj, dict):
                return obj
        except (json.JSONDecodeError, ValueError):
            pass

        match = _JSON_RE.search(text)
        if match:
            try:
                return json.loads(match.group(0))
            except (json.JSONDecodeError, ValueError):
                pass

        return None
