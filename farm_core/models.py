# farm_core/models.py

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

CONDITIONS = ("healthy", "warning", "critical")
ACTIVITY_TYPES = ("plant", "water", "fertilize", "harvest", "inspect")
STATUSES = ("pending", "completed", "cancelled")
PRIORITIES = ("low", "medium", "high")

DEFAULT_LANGUAGE = "English"
DEFAULT_STATUS = "pending"
DEFAULT_PRIORITY = "medium"
COMPLETED = "completed"


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _blank_to_none(value: Any) -> Any:
    if value is None or value == "":
        return None
    return value


def _text_or(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value else default


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item if isinstance(item, str) else str(item) for item in value]


class Record(BaseModel):
    """
    Base for every stored record. Accepts snake_case or camelCase keys.
    Records are frozen; updates go through model_copy(update=...).
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_api(self) -> Dict[str, Any]:
        """Outward shape: camelCase keys, dates as ISO-8601 strings."""
        return self.model_dump(mode="json", by_alias=True)


# --- Users ---

class UserCreate(Record):
    username: str
    password: str
    location: Optional[str] = None

    @field_validator("location", mode="before")
    @classmethod
    def _optional_text(cls, value):
        return _blank_to_none(value)


class User(UserCreate):
    id: str
    created_at: Optional[datetime] = None


# --- Plant diagnoses ---

class PlantDiagnosisCreate(Record):
    """What a diagnosis generator produces for one plant image."""
    user_id: Optional[str] = None
    crop_type: str
    condition: str
    diagnosis: Optional[str] = None
    confidence: int
    symptoms: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    treatment_steps: List[str] = Field(default_factory=list)
    next_check_date: Optional[datetime] = None
    image_data: Optional[str] = None  # base64
    location: Optional[str] = None

    @field_validator("symptoms", "recommendations", "treatment_steps", mode="before")
    @classmethod
    def _lists(cls, value):
        return _string_list(value)

    @field_validator("user_id", "diagnosis", "next_check_date", "image_data", "location", mode="before")
    @classmethod
    def _optional_fields(cls, value):
        return _blank_to_none(value)

    @field_validator("next_check_date")
    @classmethod
    def _utc(cls, value):
        return as_utc(value)


class PlantDiagnosis(PlantDiagnosisCreate):
    id: str
    created_at: Optional[datetime] = None


# --- Voice conversations ---

class VoiceConversationCreate(Record):
    user_id: Optional[str] = None
    question: str
    answer: str
    language: str = DEFAULT_LANGUAGE
    audio_data: Optional[str] = None  # base64

    @field_validator("language", mode="before")
    @classmethod
    def _language(cls, value):
        return _text_or(value, DEFAULT_LANGUAGE)

    @field_validator("user_id", "audio_data", mode="before")
    @classmethod
    def _optional_fields(cls, value):
        return _blank_to_none(value)


class VoiceConversation(VoiceConversationCreate):
    id: str
    created_at: Optional[datetime] = None


# --- Crop activities ---

class CropActivityCreate(Record):
    """A scheduled farm task. Status moves pending -> completed | cancelled."""
    user_id: Optional[str] = None
    crop: str
    activity: str
    description: str
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    status: str = DEFAULT_STATUS
    priority: str = DEFAULT_PRIORITY
    weather_dependent: bool = False
    notes: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value):
        return _text_or(value, DEFAULT_STATUS)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value):
        return _text_or(value, DEFAULT_PRIORITY)

    @field_validator("weather_dependent", mode="before")
    @classmethod
    def _flag(cls, value):
        # older clients send 0/1
        if isinstance(value, (bool, int)):
            return bool(value)
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes")
        return False

    @field_validator("user_id", "scheduled_date", "completed_date", "notes", mode="before")
    @classmethod
    def _optional_fields(cls, value):
        return _blank_to_none(value)

    @field_validator("scheduled_date", "completed_date")
    @classmethod
    def _utc(cls, value):
        return as_utc(value)


class CropActivity(CropActivityCreate):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --- Weather cache ---

class WeatherCacheCreate(Record):
    location: str
    weather_info: Any = None
    farming_advice: List[str] = Field(default_factory=list)
    expires_at: datetime

    @field_validator("farming_advice", mode="before")
    @classmethod
    def _lists(cls, value):
        return _string_list(value)

    @field_validator("expires_at")
    @classmethod
    def _utc(cls, value):
        return as_utc(value)


class WeatherCacheEntry(WeatherCacheCreate):
    """A cached weather lookup, valid only while now < expires_at."""
    id: str
    created_at: Optional[datetime] = None
