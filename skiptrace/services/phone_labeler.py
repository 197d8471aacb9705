import logging
import re

from skiptrace.schemas.search import LabeledPhone, PhoneType
from skiptrace.services.text_classifier import TextClassifier

logger = logging.getLogger(__name__)

# "(818) 216-1919", exactly one space after the area code
_PHONE_RE = re.compile(r"^\(\d{3}\) \d{3}-\d{4}$")

_TYPES = {
    "wireless": PhoneType.wireless,
    "landline": PhoneType.landline,
}


def is_valid_phone(phone: str) -> bool:
    return bool(_PHONE_RE.match(phone))


class PhoneLabeler:
    """Label distinct phone numbers as wireless/landline/unknown.

    Classifier answers are cached per labeler, so a number seen again in a
    later row of the same job is not asked about twice.
    """

    def __init__(self, classifier: TextClassifier):
        self._classifier = classifier
        self._cache: dict[str, PhoneType] = {}

    async def label_phone_numbers(self, raw_numbers: list[str]) -> list[LabeledPhone]:
        seen: set[str] = set()
        labeled: list[LabeledPhone] = []
        for raw in raw_numbers:
            phone = raw.strip()
            if phone in seen:
                continue
            seen.add(phone)
            labeled.append(LabeledPhone(number=phone, type=await self._phone_type(phone)))
        return labeled

    async def _phone_type(self, phone: str) -> PhoneType:
        if not is_valid_phone(phone):
            return PhoneType.unknown
        if phone in self._cache:
            return self._cache[phone]
        answer = await self._classifier.classify_phone_type(phone)
        phone_type = _TYPES.get(answer, PhoneType.unknown)
        logger.debug("Phone %s labeled %s", phone, phone_type)
        self._cache[phone] = phone_type
        return phone_type
