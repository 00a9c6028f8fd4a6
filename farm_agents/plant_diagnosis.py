# farm_agents/plant_diagnosis.py

import base64
import re
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Union

from farm_core.config import settings
from farm_core.models import CONDITIONS, PlantDiagnosis, as_utc
from farm_core.repository import FarmRepository

# (base64 image, crop type hint) -> raw analysis dict
ImageAnalyzer = Callable[[str, Optional[str]], Dict[str, Any]]


def _clamp_confidence(value: Any) -> int:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            confidence = int(value)
        except (ValueError, OverflowError):  # nan, inf
            return 50
    else:
        # models sometimes answer "85%" or "85 percent"
        match = re.match(r"\s*-?\d+", value) if isinstance(value, str) else None
        if match is None:
            return 50
        confidence = int(match.group())
    return max(0, min(100, confidence))


def _pick(result: Dict[str, Any], key: str, camel_key: str) -> Any:
    value = result.get(key)
    return result.get(camel_key) if value is None else value


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def sanitize_analysis(result: Dict[str, Any]) -> Dict[str, Any]:
    """
    Coerces a vision model's answer into diagnosis fields. Unknown conditions
    become "warning" and confidence is clamped to 0-100. next_check_date is
    returned as a datetime or None. Keys may be snake_case or camelCase.
    """
    next_check = None
    raw_date = _pick(result, "next_check_date", "nextCheckDate")
    if isinstance(raw_date, datetime):
        next_check = raw_date
    elif isinstance(raw_date, str) and raw_date:
        try:
            next_check = datetime.strptime(raw_date[:10], "%Y-%m-%d")
        except ValueError:
            next_check = None

    condition = result.get("condition")
    return {
        "crop_type": _pick(result, "crop_type", "cropType") or "Unknown Plant",
        "condition": condition if condition in CONDITIONS else "warning",
        "diagnosis": result.get("diagnosis") or "Unable to determine plant condition from image",
        "confidence": _clamp_confidence(result.get("confidence")),
        "symptoms": _as_list(result.get("symptoms")),
        "recommendations": _as_list(result.get("recommendations")),
        "treatment_steps": _as_list(_pick(result, "treatment_steps", "treatmentSteps")),
        "next_check_date": as_utc(next_check),
    }


class PlantDiagnosisAgent:
    """
    Runs an external image analyzer over a plant photo and records the result
    as a PlantDiagnosis. The analyzer is any callable taking the base64 image
    and an optional crop type hint; its failures are not caught here.
    """

    def __init__(self, analyze_image: ImageAnalyzer, repository: FarmRepository, recheck_days: Optional[int] = None):
        self.analyze_image = analyze_image
        self.repository = repository
        self.recheck_days = recheck_days if recheck_days is not None else settings.diagnosis_recheck_days

    def diagnose(
        self,
        user_id: Optional[str],
        image: Union[bytes, str],
        crop_type: Optional[str] = None,
        location: Optional[str] = None,
    ) -> PlantDiagnosis:
        print("---PLANT DIAGNOSIS AGENT---")
        if not image:
            raise ValueError("No image provided")

        if isinstance(image, bytes):
            image_data = base64.b64encode(image).decode("ascii")
        else:
            image_data = image

        analysis = sanitize_analysis(self.analyze_image(image_data, crop_type))
        print(f"Diagnosed {analysis['crop_type']}: {analysis['condition']} ({analysis['confidence']}%)")

        if analysis["next_check_date"] is None:
            analysis["next_check_date"] = self.repository.now() + timedelta(days=self.recheck_days)

        return self.repository.create_plant_diagnosis({
            **analysis,
            "user_id": user_id,
            "image_data": image_data,
            "location": location,
        })
