"""Voice models and languages the processing backend knows about."""

from typing import Literal, get_args

from pydantic import BaseModel

VoiceConversionModel = Literal[
    "伍佰",
    "吳青峰",
    "張惠妹",
    "王菲",
    "米津玄師",
    "Beatles",
    "BonJovi",
    "LadyGaga",
    "WhitneyHouston",
    "Yoasobi",
    "gura",
]

VOICE_CONVERSION_MODELS: list[str] = list(get_args(VoiceConversionModel))

_VOICE_CONVERSION_LABELS: dict[str, str] = {
    "Beatles": "beetles",
    "BonJovi": "Don Covi",
    "LadyGaga": "Gen Kaka",
    "WhitneyHouston": "Wheny Houstion",
    "伍佰": "五百萬",
    "張惠妹": "章蕙媚",
    "吳青峰": "無清風",
    "Yoasobi": "Yoarsobad",
    "王菲": "王飛",
    "米津玄師": "高筋律師",
    "gura": "Kula",
}


def voice_conversion_model_to_label(model: str) -> str:
    return _VOICE_CONVERSION_LABELS.get(model, model)


class Language(BaseModel):
    key: str
    label: str


SUPPORTED_DETECT_LANGUAGES: list[Language] = [
    Language(key="zh-CN", label="chinese"),
    Language(key="en-US", label="english"),
]

SUPPORTED_TRANSLATE_TARGET_LANGUAGES: list[Language] = [
    Language(key="zh-Hant", label="chinese"),
    Language(key="en", label="english"),
    Language(key="ja", label="japanese"),
]
