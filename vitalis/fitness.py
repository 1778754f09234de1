"""
Body metrics used by the BMI calculator widget.

Formulas:
    BMI       weight / height^2
    Body fat  US Navy circumference method, clamped to 5..45 %
    BMR       Mifflin-St Jeor
    TDEE      BMR x activity multiplier
"""
from __future__ import annotations

import math
from typing import Any, Dict, Optional

from vitalis.errors import ValidationError

CM_PER_INCH = 2.54
KG_PER_POUND = 0.453592

ACTIVITY_MULTIPLIERS = {
    "sedentary": 1.2,
    "light": 1.375,
    "moderate": 1.55,
    "active": 1.725,
    "very_active": 1.9,
}

BMI_CATEGORIES = [
    (18.5, "Underweight"),
    (25, "Normal weight"),
    (30, "Overweight"),
    (35, "Obesity (Class 1)"),
    (40, "Obesity (Class 2)"),
]
BMI_TOP_CATEGORY = "Obesity (Class 3)"

BODY_FAT_CATEGORIES = {
    "male": [(6, "Essential Fat"), (14, "Athletic"), (18, "Fitness"), (25, "Average")],
    "female": [(14, "Essential Fat"), (21, "Athletic"), (25, "Fitness"), (32, "Average")],
}
BODY_FAT_TOP_CATEGORY = "Obese"

HEALTHY_BMI_RANGE = (18.5, 24.9)
BODY_FAT_BOUNDS = (5.0, 45.0)

GENDERS = ("male", "female")
UNITS = ("metric", "imperial")


def _positive(name: str, value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number", {"field": name})
    if not math.isfinite(number) or number <= 0:
        raise ValidationError(f"{name} must be greater than zero", {"field": name})
    return number


def _optional_positive(name: str, value: Any) -> Optional[float]:
    if value in (None, "", 0):
        return None
    return _positive(name, value)


def _choice(name: str, value: Any, allowed) -> str:
    text = str(value or "").strip().lower()
    if text not in allowed:
        raise ValidationError(f"{name} must be one of: {', '.join(allowed)}", {"field": name})
    return text


def to_metric(height: float, weight: float, units: str = "metric") -> tuple[float, float]:
    """Returns (height_cm, weight_kg)."""
    if units == "imperial":
        return height * CM_PER_INCH, weight * KG_PER_POUND
    return height, weight


def calculate_bmi(weight_kg: float, height_cm: float) -> float:
    height_m = height_cm / 100
    return weight_kg / (height_m * height_m)


def bmi_category(bmi: float) -> str:
    for upper, label in BMI_CATEGORIES:
        if bmi < upper:
            return label
    return BMI_TOP_CATEGORY


def navy_body_fat(
    gender: str,
    height_cm: float,
    neck_cm: float,
    waist_cm: float,
    hip_cm: Optional[float] = None,
) -> Optional[float]:
    """
    None when the measurements are insufficient (female needs hip) or
    produce a non-positive log argument.
    """
    if gender == "male":
        girth = waist_cm - neck_cm
        if girth <= 0:
            return None
        body_fat = 86.01 * math.log10(girth) - 70.041 * math.log10(height_cm) + 36.76
    else:
        if not hip_cm:
            return None
        girth = waist_cm + hip_cm - neck_cm
        if girth <= 0:
            return None
        body_fat = 163.205 * math.log10(girth) - 97.684 * math.log10(height_cm) - 104.912
    low, high = BODY_FAT_BOUNDS
    return max(low, min(high, body_fat))


def body_fat_category(gender: str, body_fat: float) -> str:
    for upper, label in BODY_FAT_CATEGORIES[gender]:
        if body_fat < upper:
            return label
    return BODY_FAT_TOP_CATEGORY


def calculate_bmr(gender: str, weight_kg: float, height_cm: float, age: float) -> float:
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    return base + 5 if gender == "male" else base - 161


def calculate_tdee(bmr: float, activity_level: str) -> float:
    return bmr * ACTIVITY_MULTIPLIERS[activity_level]


def ideal_weight_range(height_cm: float, bmi_range=HEALTHY_BMI_RANGE) -> Dict[str, float]:
    height_m2 = (height_cm / 100) ** 2
    return {
        "min": round(bmi_range[0] * height_m2, 1),
        "max": round(bmi_range[1] * height_m2, 1),
    }


def calculate_profile(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validates raw input and computes the full metric set.

    Expected keys: height, weight, age, gender, activity_level (default
    "moderate"), units (default "metric"), optional neck/waist/hip in the
    same length unit as height.
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    units = _choice("units", data.get("units") or "metric", UNITS)
    gender = _choice("gender", data.get("gender"), GENDERS)
    activity_level = _choice("activity_level", data.get("activity_level") or "moderate", tuple(ACTIVITY_MULTIPLIERS))
    height = _positive("height", data.get("height"))
    weight = _positive("weight", data.get("weight"))
    age = _positive("age", data.get("age"))

    height_cm, weight_kg = to_metric(height, weight, units)
    length_factor = CM_PER_INCH if units == "imperial" else 1.0
    neck = _optional_positive("neck", data.get("neck"))
    waist = _optional_positive("waist", data.get("waist"))
    hip = _optional_positive("hip", data.get("hip"))

    bmi = calculate_bmi(weight_kg, height_cm)
    result: Dict[str, Any] = {
        "bmi": round(bmi, 1),
        "category": bmi_category(bmi),
        "body_fat": None,
        "body_fat_category": None,
        "lean_mass": None,
    }

    if neck and waist:
        body_fat = navy_body_fat(
            gender,
            height_cm,
            neck * length_factor,
            waist * length_factor,
            hip * length_factor if hip else None,
        )
        if body_fat is not None:
            result["body_fat"] = round(body_fat, 1)
            result["body_fat_category"] = body_fat_category(gender, body_fat)
            result["lean_mass"] = round(weight_kg * (1 - body_fat / 100), 1)

    bmr = calculate_bmr(gender, weight_kg, height_cm, age)
    tdee = calculate_tdee(bmr, activity_level)
    result.update(
        {
            "bmr": round(bmr),
            "tdee": round(tdee),
            "calorie_targets": {
                "loss": round(tdee * 0.8),
                "maintain": round(tdee),
                "gain": round(tdee * 1.1),
            },
            "ideal_weight": ideal_weight_range(height_cm),
        }
    )
    return result
