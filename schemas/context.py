"""Identity and language schemas."""

from enum import Enum
from pydantic import BaseModel, ConfigDict

from .entities import Scope


class Language(str, Enum):
    """Utterance languages the assistant detects and mirrors."""
    ENGLISH = "en"
    HINDI = "hi"
    SPANISH = "es"
    FRENCH = "fr"
    GERMAN = "de"
    JAPANESE = "ja"
    CHINESE = "zh"


class Identity(BaseModel):
    """Already-authenticated caller, supplied by the auth layer."""
    model_config = ConfigDict(frozen=True)

    user_id: str
    company_id: str

    def scope(self, client_id=None) -> Scope:
        return Scope(company_id=self.company_id, client_id=client_id)
