"""
Biodata form validation.

Each form step is a pydantic model. Field types and ``Field`` constraints do
the per-field checks; the few rules that look at two fields at once live in
``model_validator`` hooks. ``validate_step`` checks one step while the user
is filling the form; ``validate_profile_data`` checks every step and is what
gates submission. Both return ``{field: message}`` so the API can show the
message next to the input.
"""

from typing import Any, ClassVar, Dict, List, Literal, Mapping, Optional, Type

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, model_validator
from pydantic_core import PydanticCustomError

from app.modules.drafts.models import BIODATA_STEPS

YesNo = Literal["Yes", "No"]
EconomicCondition = Literal["Lower", "Middle", "Upper-middle", "Affluent"]
PartnerView = Literal["Strongly Support", "Support", "Neutral", "Don't Support", "Strongly Against"]


class StepForm(BaseModel):
    """
    Base for one step of the biodata form.

    Blank strings count as missing, so an emptied input reports "required"
    rather than a type error. Keys that belong to other steps are ignored.
    """

    step: ClassVar[int]
    title: ClassVar[str]
    # Message for any failure other than "missing", per field
    invalid_messages: ClassVar[Dict[str, str]] = {}

    class Config:
        extra = "ignore"
        coerce_numbers_to_str = True

    @model_validator(mode="before")
    @classmethod
    def drop_blanks(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        cleaned = {}
        for key, value in data.items():
            if isinstance(value, str):
                value = value.strip()
                if not value:
                    continue
            if value is None:
                continue
            cleaned[key] = value
        return cleaned

    @staticmethod
    def dependent_fields(failures: Dict[str, str]) -> None:
        """Raise one error carrying every cross-field failure of the step."""
        if failures:
            raise PydanticCustomError(
                "dependent_fields", "Related fields are incomplete", {"fields": failures}
            )


class FamilyBackground(StepForm):
    step: ClassVar[int] = 1
    title: ClassVar[str] = "Family Background"

    fatherAlive: YesNo = Field(..., title="Father's status")
    fatherOccupation: Optional[str] = Field(None, max_length=500)
    motherAlive: YesNo = Field(..., title="Mother's status")
    motherOccupation: Optional[str] = Field(None, max_length=500)
    brothersCount: int = Field(..., ge=0, title="Number of brothers")
    sistersCount: int = Field(..., ge=0, title="Number of sisters")
    familyEconomicCondition: EconomicCondition = Field(..., title="Family economic condition")

    @model_validator(mode="after")
    def occupation_of_living_parents(self) -> "FamilyBackground":
        failures = {}
        if self.fatherAlive == "Yes" and not self.fatherOccupation:
            failures["fatherOccupation"] = "Father's occupation details are required"
        if self.motherAlive == "Yes" and not self.motherOccupation:
            failures["motherOccupation"] = "Mother's occupation details are required"
        self.dependent_fields(failures)
        return self


class EducationProfession(StepForm):
    step: ClassVar[int] = 2
    title: ClassVar[str] = "Education & Profession"
    invalid_messages: ClassVar[Dict[str, str]] = {
        "hscPassingYear": "HSC passing year must be between 1990 and 2030",
    }

    educationMedium: Literal["Bengali", "English", "Both"] = Field(..., title="Education medium")
    hscPassingYear: int = Field(..., ge=1990, le=2030, title="HSC passing year")
    hscGroup: str = Field(..., max_length=100, title="HSC group")
    hscResult: str = Field(..., max_length=100, title="HSC result")
    profession: str = Field(..., max_length=200, title="Profession")
    professionDescription: str = Field(..., max_length=1000, title="Profession description")
    monthlyIncome: Literal[
        "No Income",
        "Below 20,000 BDT",
        "20,000 - 40,000 BDT",
        "40,000 - 60,000 BDT",
        "60,000 - 80,000 BDT",
        "80,000 - 100,000 BDT",
        "Above 100,000 BDT",
        "Prefer not to say",
    ] = Field(..., title="Monthly income")


class LifestyleHealth(StepForm):
    step: ClassVar[int] = 3
    title: ClassVar[str] = "Lifestyle, Health & Compatibility"
    invalid_messages: ClassVar[Dict[str, str]] = {
        "age": "Age must be between 18 and 100",
    }

    gender: Literal["Male", "Female"] = Field(..., title="Gender")
    religion: Literal["Muslim", "Hindu", "Christian", "Buddhist", "Other"] = Field(..., title="Religion")
    age: int = Field(..., ge=18, le=100, title="Age")
    height: str = Field(..., max_length=50, title="Height")
    weight: str = Field(..., max_length=50, title="Weight")
    skinTone: Literal["Fair", "Medium", "Dark", "Very Fair", "Wheatish"] = Field(..., title="Skin tone")
    maritalStatus: Literal["Never Married", "Divorced", "Widowed"] = Field(..., title="Marital status")
    presentAddressDivision: str = Field(..., max_length=100, title="Present address division")
    presentAddressDistrict: str = Field(..., max_length=100, title="Present address district")
    permanentAddressDivision: str = Field(..., max_length=100, title="Permanent address division")
    permanentAddressDistrict: str = Field(..., max_length=100, title="Permanent address district")
    religiousPractices: str = Field(..., max_length=1000, title="Religious practices information")
    practiceFrequency: Literal["Daily", "Weekly", "Monthly", "Occasionally", "Rarely"] = Field(
        ..., title="Practice frequency"
    )
    mentalPhysicalIllness: str = Field(..., max_length=1000, title="Health information")
    hobbiesLikesDislikesDreams: str = Field(
        ..., max_length=2000, title="Hobbies, likes, dislikes, and dreams information"
    )
    partnerStudyAfterMarriage: Optional[PartnerView] = Field(None, title="Partner study view")
    partnerJobAfterMarriage: Optional[PartnerView] = Field(None, title="Partner job view")


class PartnerDeclaration(StepForm):
    step: ClassVar[int] = 4
    title: ClassVar[str] = "Expected Life Partner & Declaration"
    invalid_messages: ClassVar[Dict[str, str]] = {
        "guardianKnowledge": "You must confirm that your guardian/family knows about this biodata",
        "informationTruthfulness": "You must confirm that all information provided is truthful",
        "falseInformationAgreement": (
            "You must agree that providing false information will result in permanent account suspension"
        ),
    }

    # Either the combined text or both ends of the range
    partnerAgePreference: Optional[str] = None
    partnerAgePreferenceMin: Optional[str] = None
    partnerAgePreferenceMax: Optional[str] = None
    partnerHeight: Optional[str] = None
    partnerHeightMin: Optional[str] = None
    partnerHeightMax: Optional[str] = None

    partnerSkinTone: Literal["Fair", "Medium", "Dark", "Any"] = Field(
        ..., title="Partner skin tone preference"
    )
    partnerEducation: str = Field(..., max_length=200, title="Partner education preference")
    partnerDistrictRegion: str = Field(..., max_length=200, title="Partner district/region preference")
    partnerMaritalStatus: Literal["Single", "Divorced", "Widowed", "Any"] = Field(
        ..., title="Partner marital status preference"
    )
    partnerProfession: str = Field(..., max_length=200, title="Partner profession preference")
    partnerEconomicCondition: Literal["Lower", "Middle", "Upper-middle", "Affluent", "Any"] = Field(
        ..., title="Partner economic condition preference"
    )
    guardianKnowledge: Literal["Yes"] = Field(..., title="Guardian knowledge confirmation")
    informationTruthfulness: Literal["Yes"] = Field(..., title="Information truthfulness confirmation")
    falseInformationAgreement: Literal["Yes"] = Field(..., title="False information agreement")
    contactInformation: str = Field(..., min_length=10, max_length=500, title="Contact information")
    personalContactInfo: str = Field(..., min_length=5, max_length=1000, title="Personal contact information")

    @model_validator(mode="after")
    def preference_ranges(self) -> "PartnerDeclaration":
        failures = {}
        if not self.partnerAgePreference and not (
            self.partnerAgePreferenceMin and self.partnerAgePreferenceMax
        ):
            failures["partnerAgePreference"] = "Partner age preference is required"
        if not self.partnerHeight and not (self.partnerHeightMin and self.partnerHeightMax):
            failures["partnerHeight"] = "Partner height preference is required"
        self.dependent_fields(failures)
        return self


STEP_MODELS: Dict[int, Type[StepForm]] = {
    model.step: model
    for model in (FamilyBackground, EducationProfession, LifestyleHealth, PartnerDeclaration)
}

if sorted(STEP_MODELS) != list(range(1, BIODATA_STEPS + 1)):
    raise RuntimeError(f"Form steps {sorted(STEP_MODELS)} do not cover 1..{BIODATA_STEPS}")

_INT = TypeAdapter(int)


def as_int(value: Any) -> Optional[int]:
    if isinstance(value, str):
        value = value.strip()
    try:
        return _INT.validate_python(value)
    except ValidationError:
        return None


def step_name(step: int) -> str:
    model = STEP_MODELS.get(step)
    return model.title if model else f"Step {step}"


def _message(model: Type[StepForm], error: Dict[str, Any]) -> Dict[str, str]:
    """Turn one pydantic error into ``{field: message}`` entries."""
    if error["type"] == "dependent_fields":
        return dict(error["ctx"]["fields"])
    if not error["loc"]:
        return {"form": error["msg"]}

    field = str(error["loc"][0])
    info = model.model_fields.get(field)
    title = (info.title if info else None) or field
    ctx = error.get("ctx") or {}
    kind = error["type"]

    if kind == "missing":
        return {field: f"{title} is required"}
    if field in model.invalid_messages:
        return {field: model.invalid_messages[field]}
    if kind == "literal_error":
        return {field: f"{title} must be one of {ctx['expected']}"}
    if kind in ("int_parsing", "int_from_float", "int_type"):
        return {field: f"{title} must be a whole number"}
    if kind == "greater_than_equal":
        if ctx["ge"] == 0:
            return {field: f"{title} cannot be negative"}
        return {field: f"{title} must be at least {ctx['ge']}"}
    if kind == "less_than_equal":
        return {field: f"{title} must be at most {ctx['le']}"}
    if kind == "string_too_short":
        return {field: f"{title} must be at least {ctx['min_length']} characters long"}
    if kind == "string_too_long":
        return {field: f"{title} cannot exceed {ctx['max_length']} characters"}
    return {field: f"{title} is invalid: {error['msg']}"}


def validate_step(step: int, form: Mapping[str, Any]) -> Dict[str, str]:
    """
    Validate the fields that belong to one step.

    Returns:
        Mapping of field name to message; empty when the step is valid
    """
    model = STEP_MODELS.get(step)
    if model is None:
        raise ValueError(f"Invalid step number: {step}")
    try:
        model.model_validate(dict(form))
    except ValidationError as exc:
        errors: Dict[str, str] = {}
        for error in exc.errors():
            for field, message in _message(model, error).items():
                errors.setdefault(field, message)
        return errors
    return {}


def validate_profile_data(form: Mapping[str, Any]) -> Dict[str, str]:
    """Validate every step. Submission is allowed only when this is empty."""
    errors: Dict[str, str] = {}
    for step in STEP_MODELS:
        for field, message in validate_step(step, form).items():
            errors.setdefault(field, message)
    return errors


def failing_steps(form: Mapping[str, Any]) -> List[int]:
    return [step for step in STEP_MODELS if validate_step(step, form)]


def summarize_errors(errors: Mapping[str, str], form: Mapping[str, Any]) -> str:
    """One-line summary naming the steps that still need attention."""
    if not errors:
        return "All steps are complete"
    steps = ", ".join(step_name(step) for step in failing_steps(form))
    noun = "field needs" if len(errors) == 1 else "fields need"
    return f"{len(errors)} {noun} attention in: {steps}"
