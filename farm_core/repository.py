# farm_core/repository.py

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel

from .models import (
    COMPLETED,
    CropActivity,
    CropActivityCreate,
    PlantDiagnosis,
    PlantDiagnosisCreate,
    User,
    UserCreate,
    VoiceConversation,
    VoiceConversationCreate,
    WeatherCacheCreate,
    WeatherCacheEntry,
    as_utc,
)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

CreateModel = TypeVar("CreateModel", bound=BaseModel)
Fields = Union[Mapping[str, Any], BaseModel]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _validated(model_cls: Type[CreateModel], fields: Fields) -> Dict[str, Any]:
    """
    Runs the create-payload model over caller input and returns only the
    caller-owned fields. Defaults and coercions happen here, nowhere else.
    """
    if isinstance(fields, Mapping):
        fields = dict(fields)
    payload = model_cls.model_validate(fields)
    return {name: getattr(payload, name) for name in model_cls.model_fields}


def _newest_first(records: Iterable, attr: str = "created_at") -> List:
    return sorted(records, key=lambda r: getattr(r, attr) or EPOCH, reverse=True)


def _soonest_first(records: Iterable, attr: str = "scheduled_date") -> List:
    return sorted(records, key=lambda r: getattr(r, attr) or EPOCH)


class FarmRepository:
    """
    In-memory store for users, plant diagnoses, voice conversations, crop
    activities and cached weather lookups.

    Construct one per process and hand it to whatever needs it. Lookups that
    find nothing return None. user_id values are plain identifiers; their
    existence is not checked.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or utcnow
        # dicts keep insertion order, which "first match" lookups rely on
        self.users: Dict[str, User] = {}
        self.plant_diagnoses: Dict[str, PlantDiagnosis] = {}
        self.voice_conversations: Dict[str, VoiceConversation] = {}
        self.crop_activities: Dict[str, CropActivity] = {}
        self.weather_data: Dict[str, WeatherCacheEntry] = {}

    def now(self) -> datetime:
        return as_utc(self._clock())

    # --- Users ---

    def create_user(self, username: str, password: str, location: Optional[str] = None) -> User:
        # No uniqueness check on username; a second user with the same name is stored as-is.
        data = _validated(UserCreate, {"username": username, "password": password, "location": location})
        user = User(**data, id=_new_id(), created_at=self.now())
        self.users[user.id] = user
        print(f"---REPOSITORY: Created user '{user.username}'---")
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.username == username), None)

    # --- Plant diagnoses ---

    def create_plant_diagnosis(self, fields: Fields) -> PlantDiagnosis:
        data = _validated(PlantDiagnosisCreate, fields)
        diagnosis = PlantDiagnosis(**data, id=_new_id(), created_at=self.now())
        self.plant_diagnoses[diagnosis.id] = diagnosis
        print(f"---REPOSITORY: Saved {diagnosis.condition} diagnosis for {diagnosis.crop_type} (user {diagnosis.user_id})---")
        return diagnosis

    def get_plant_diagnosis(self, diagnosis_id: str) -> Optional[PlantDiagnosis]:
        return self.plant_diagnoses.get(diagnosis_id)

    def get_user_plant_diagnoses(self, user_id: str) -> List[PlantDiagnosis]:
        """All diagnoses for a user, most recent first."""
        return _newest_first(d for d in self.plant_diagnoses.values() if d.user_id == user_id)

    def get_plant_diagnoses_by_condition(self, user_id: str, condition: str) -> List[PlantDiagnosis]:
        return _newest_first(
            d for d in self.plant_diagnoses.values()
            if d.user_id == user_id and d.condition == condition
        )

    # --- Voice conversations ---

    def create_voice_conversation(self, fields: Fields) -> VoiceConversation:
        data = _validated(VoiceConversationCreate, fields)
        conversation = VoiceConversation(**data, id=_new_id(), created_at=self.now())
        self.voice_conversations[conversation.id] = conversation
        print(f"---REPOSITORY: Saved {conversation.language} conversation for user {conversation.user_id}---")
        return conversation

    def get_user_voice_conversations(self, user_id: str) -> List[VoiceConversation]:
        """All conversations for a user, most recent first."""
        return _newest_first(c for c in self.voice_conversations.values() if c.user_id == user_id)

    # --- Crop activities ---

    def create_crop_activity(self, fields: Fields) -> CropActivity:
        data = _validated(CropActivityCreate, fields)
        now = self.now()
        activity = CropActivity(**data, id=_new_id(), created_at=now, updated_at=now)
        self.crop_activities[activity.id] = activity
        print(f"---REPOSITORY: Scheduled '{activity.activity}' on {activity.crop} for user {activity.user_id}---")
        return activity

    def get_crop_activity(self, activity_id: str) -> Optional[CropActivity]:
        return self.crop_activities.get(activity_id)

    def get_user_crop_activities(self, user_id: str) -> List[CropActivity]:
        """The user's calendar, soonest scheduled first."""
        return _soonest_first(a for a in self.crop_activities.values() if a.user_id == user_id)

    def update_crop_activity_status(
        self,
        activity_id: str,
        status: str,
        completed_date: Optional[datetime] = None,
    ) -> Optional[CropActivity]:
        """
        Replaces the activity's status and refreshes updated_at.

        completed_date is taken as given; when omitted it is stamped with the
        current time for a move to "completed" and left alone otherwise.
        Moves out of completed/cancelled are not blocked.
        """
        activity = self.crop_activities.get(activity_id)
        if activity is None:
            return None

        now = self.now()
        if activity.updated_at is not None and now <= activity.updated_at:
            now = activity.updated_at + timedelta(microseconds=1)

        if completed_date is not None:
            completed_date = as_utc(completed_date)
        elif status == COMPLETED:
            completed_date = now
        else:
            completed_date = activity.completed_date

        updated = activity.model_copy(update={
            "status": status,
            "completed_date": completed_date,
            "updated_at": now,
        })
        self.crop_activities[activity_id] = updated
        print(f"---REPOSITORY: Activity {activity_id} -> {status}---")
        return updated

    def get_user_crop_activities_by_status(self, user_id: str, status: str) -> List[CropActivity]:
        return _soonest_first(
            a for a in self.crop_activities.values()
            if a.user_id == user_id and a.status == status
        )

    # --- Weather cache ---

    def create_weather_data(self, fields: Fields) -> WeatherCacheEntry:
        data = _validated(WeatherCacheCreate, fields)
        entry = WeatherCacheEntry(**data, id=_new_id(), created_at=self.now())
        self.weather_data[entry.id] = entry
        print(f"---REPOSITORY: Cached weather for '{entry.location}' until {entry.expires_at.isoformat()}---")
        return entry

    def get_weather_data_by_location(self, location: str) -> Optional[WeatherCacheEntry]:
        """First entry for the location (case-insensitive), expired or not."""
        wanted = location.lower()
        return next((w for w in self.weather_data.values() if w.location.lower() == wanted), None)

    def get_valid_weather_data(self, location: str) -> Optional[WeatherCacheEntry]:
        """
        First entry for the location that has not expired yet. Expired rows are
        never removed; they just stop matching.
        """
        wanted = location.lower()
        now = self.now()
        return next(
            (w for w in self.weather_data.values() if w.location.lower() == wanted and w.expires_at > now),
            None,
        )
