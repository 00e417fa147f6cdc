from dataclasses import dataclass
from typing import Optional, Union

from backend.models.schemas import AspectRatio
from backend.services.errors import ValidationError
from backend.services.image_encoder import EncodedImage

EMPTY_PROMPT_MESSAGE = "Please enter a prompt to generate a video."

VOICE_CLAUSE = ' The subject should say the following with synchronized lip movement: "{text}"'
WATERMARK_CLAUSE = ' A watermark with the text "{text}" should be added to the bottom right corner of the video.'


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    raw_prompt: str
    aspect_ratio: AspectRatio
    model: str
    voice_text: str = ""
    watermark_text: str = ""
    reference_image: Optional[EncodedImage] = None


def _quote_safe(text: str) -> str:
    # A double quote would close the quoted instruction early.
    return text.replace('"', "'")


def build_prompt(prompt: str, voice_text: Optional[str] = None, watermark_text: Optional[str] = None) -> str:
    full_prompt = prompt
    voice_text = (voice_text or "").strip()
    watermark_text = (watermark_text or "").strip()
    if voice_text:
        full_prompt += VOICE_CLAUSE.format(text=_quote_safe(voice_text))
    if watermark_text:
        full_prompt += WATERMARK_CLAUSE.format(text=_quote_safe(watermark_text))
    return full_prompt


def build_generation_request(
    prompt: str,
    model: str,
    aspect_ratio: Union[AspectRatio, str] = AspectRatio.LANDSCAPE,
    voice_text: Optional[str] = None,
    watermark_text: Optional[str] = None,
    reference_image: Optional[EncodedImage] = None,
) -> GenerationRequest:
    if not prompt or not prompt.strip():
        raise ValidationError(EMPTY_PROMPT_MESSAGE)
    try:
        ratio = AspectRatio(aspect_ratio)
    except ValueError as exc:
        allowed = ", ".join(r.value for r in AspectRatio)
        raise ValidationError(f"Unsupported aspect ratio {aspect_ratio!r}. Choose one of: {allowed}.") from exc

    return GenerationRequest(
        prompt=build_prompt(prompt, voice_text, watermark_text),
        raw_prompt=prompt,
        aspect_ratio=ratio,
        model=model,
        voice_text=(voice_text or "").strip(),
        watermark_text=(watermark_text or "").strip(),
        reference_image=reference_image,
    )
