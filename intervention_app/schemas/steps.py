"""Step content and step response shapes, one variant per step type.

Steps store their content and users' answers as JSON. The models here give
each `StepType` its own content/response shape so authoring input and
recorded answers can be checked against the step they belong to.
"""
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from intervention_app.core.exceptions import InvalidInputError
from intervention_app.database.models import StepType


class _Content(BaseModel):
    # Authors may attach display fields (title, description, ...) we don't interpret
    model_config = {"extra": "allow"}


class _Answer(BaseModel):
    model_config = {"extra": "forbid"}


class Option(BaseModel):
    id: str
    text: str
    value: Union[str, int, float]


class Prompt(BaseModel):
    id: str
    text: str
    placeholder: Optional[str] = None


class SingleChoiceContent(_Content):
    question: str
    options: List[Option] = Field(min_length=1)
    required: bool = False


class MultipleChoiceContent(_Content):
    question: str
    options: List[Option] = Field(min_length=1)
    minSelections: Optional[int] = None
    maxSelections: Optional[int] = None
    required: bool = False


class TextInputContent(_Content):
    question: str
    placeholder: Optional[str] = None
    minLength: Optional[int] = None
    maxLength: Optional[int] = None
    required: bool = False


class TextReflectionContent(_Content):
    introText: Optional[str] = None
    prompts: List[Prompt] = Field(min_length=1)
    required: bool = False


class InformationContent(_Content):
    content: str
    acknowledgmentRequired: bool = False


class MediaContent(_Content):
    mediaType: Literal["image", "video", "audio"]
    url: str
    caption: Optional[str] = None
    acknowledgmentRequired: bool = False


class SingleChoiceAnswer(_Answer):
    selectedOptionId: str


class MultipleChoiceAnswer(_Answer):
    selectedOptionIds: List[str]


class TextInputAnswer(_Answer):
    text: str


class Reflection(BaseModel):
    promptId: str
    text: str


class TextReflectionAnswer(_Answer):
    reflections: List[Reflection]


class AcknowledgmentAnswer(_Answer):
    acknowledged: bool


class MediaAnswer(_Answer):
    acknowledged: bool
    watchTimeSeconds: Optional[float] = None


class BranchCondition(BaseModel):
    field: str
    operator: Literal["equals", "notEquals", "contains", "greaterThan", "lessThan"]
    value: Any


class NextStepRule(BaseModel):
    """Conditional navigation: go to `nextStepId` when every condition holds."""
    conditions: List[BranchCondition]
    nextStepId: str

    @model_validator(mode="after")
    def _has_conditions(self):
        if not self.conditions:
            raise ValueError("a branching rule needs at least one condition")
        return self


CONTENT_MODELS = {
    StepType.QUESTION_SINGLE_CHOICE: SingleChoiceContent,
    StepType.QUESTION_MULTIPLE_CHOICE: MultipleChoiceContent,
    StepType.TEXT_INPUT: TextInputContent,
    StepType.TEXT_REFLECTION: TextReflectionContent,
    StepType.INFORMATION: InformationContent,
    StepType.MEDIA: MediaContent,
}

ANSWER_MODELS = {
    StepType.QUESTION_SINGLE_CHOICE: SingleChoiceAnswer,
    StepType.QUESTION_MULTIPLE_CHOICE: MultipleChoiceAnswer,
    StepType.TEXT_INPUT: TextInputAnswer,
    StepType.TEXT_REFLECTION: TextReflectionAnswer,
    StepType.INFORMATION: AcknowledgmentAnswer,
    StepType.MEDIA: MediaAnswer,
}


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ())) or "payload"
    return f"{loc}: {err.get('msg')}"


def validate_step_content(step_type: StepType, content: Dict[str, Any]) -> Dict[str, Any]:
    """Check authored step content against its type and return it normalized."""
    model = CONTENT_MODELS[StepType(step_type)]
    try:
        parsed = model.model_validate(content)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid {StepType(step_type).value} content ({_first_error(e)})") from e
    return parsed.model_dump(exclude_none=True)


def validate_step_response(step_type: StepType, content: Dict[str, Any], payload: Dict[str, Any]) -> Dict[str, Any]:
    """Check a user's answer against the step it answers.

    Beyond the shape, choice answers must reference options the step offers and
    text answers must respect the step's length bounds.
    """
    step_type = StepType(step_type)
    try:
        answer = ANSWER_MODELS[step_type].model_validate(payload)
    except ValidationError as e:
        raise InvalidInputError(f"Response does not match {step_type.value} step ({_first_error(e)})") from e

    content = content or {}
    option_ids = {str(o.get("id")) for o in content.get("options", []) if isinstance(o, dict)}

    if isinstance(answer, SingleChoiceAnswer):
        if option_ids and answer.selectedOptionId not in option_ids:
            raise InvalidInputError(f"Unknown option '{answer.selectedOptionId}'")
    elif isinstance(answer, MultipleChoiceAnswer):
        unknown = [o for o in answer.selectedOptionIds if option_ids and o not in option_ids]
        if unknown:
            raise InvalidInputError(f"Unknown options: {', '.join(unknown)}")
        count = len(answer.selectedOptionIds)
        if content.get("minSelections") is not None and count < content["minSelections"]:
            raise InvalidInputError(f"At least {content['minSelections']} options must be selected")
        if content.get("maxSelections") is not None and count > content["maxSelections"]:
            raise InvalidInputError(f"At most {content['maxSelections']} options may be selected")
    elif isinstance(answer, TextInputAnswer):
        if content.get("minLength") is not None and len(answer.text) < content["minLength"]:
            raise InvalidInputError(f"Text must be at least {content['minLength']} characters")
        if content.get("maxLength") is not None and len(answer.text) > content["maxLength"]:
            raise InvalidInputError(f"Text must be at most {content['maxLength']} characters")
    elif isinstance(answer, TextReflectionAnswer):
        prompt_ids = {str(p.get("id")) for p in content.get("prompts", []) if isinstance(p, dict)}
        unknown = [r.promptId for r in answer.reflections if prompt_ids and r.promptId not in prompt_ids]
        if unknown:
            raise InvalidInputError(f"Unknown prompts: {', '.join(unknown)}")

    return answer.model_dump(exclude_none=True)
