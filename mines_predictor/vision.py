"""Boundary with the image-analysis collaborator that suggests safe cells."""

import base64
import json
import logging
import mimetypes
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

import openai

from .config import API_KEY_ENV, DEFAULT_MODEL

logger = logging.getLogger(__name__)

DEFAULT_ANALYSIS_TEXT = "Analysis complete. No notable pattern detected."


class AnalysisError(Exception):
    """Failure reported by the analysis collaborator."""


class AnalysisCredentialError(AnalysisError):
    """The credential used for analysis is missing or was rejected."""


class AnalysisGenericError(AnalysisError):
    """Any other analysis failure (network, quota, malformed response)."""


@dataclass
class AnalysisResult:
    """Summary text plus the raw prediction items returned by the collaborator."""

    analysis_text: str
    predictions: List[Any] = field(default_factory=list)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "AnalysisResult":
        """
        Build a result from a decoded JSON payload.

        Missing or empty text falls back to a default summary and a missing
        prediction list to an empty one.

        Raises:
            AnalysisGenericError: If the payload or its predictions have the wrong shape.
        """
        if not isinstance(data, dict):
            raise AnalysisGenericError("Analysis response is not a JSON object.")
        predictions = data.get("predictions") or []
        if not isinstance(predictions, list):
            raise AnalysisGenericError("Analysis predictions are not a list.")
        text = data.get("analysisText") or DEFAULT_ANALYSIS_TEXT
        return cls(analysis_text=str(text), predictions=predictions)


class Analyzer(Protocol):
    """Anything able to turn a board screenshot into predictions."""

    async def analyze(self, image: str, grid_size: int) -> AnalysisResult:
        ...


def encode_image(data: bytes, mime_type: str = "image/jpeg") -> str:
    """Encode raw image bytes as a base64 data URL."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def load_image(path: Union[str, Path]) -> str:
    """Read an image file into a data URL, guessing the mime type from its name."""
    path = Path(path)
    mime_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
    return encode_image(path.read_bytes(), mime_type)


def build_prompt(grid_size: int) -> str:
    """Instructions sent along with the screenshot."""
    last = grid_size - 1
    return f"""You are a tactical analyst for the grid game "Mines". Analyze this screenshot of a {grid_size}x{grid_size} grid and suggest the next safe cells.

1. Locate the diamonds already found and any revealed mines.
2. Look at how revealed cells are spread (clusters, diagonals, empty regions).
3. Avoid unrevealed cells next to revealed mines.
4. Pick 3 to 5 unrevealed cells with the best safety ratio.

Return ONLY valid JSON with this exact structure:
{{
  "analysisText": "Short strategic summary naming the detected pattern",
  "predictions": [
    {{"r": <row 0..{last}>, "c": <column 0..{last}>, "p": <confidence 0-100>, "reason": "brief tactical reason"}}
  ]
}}
Row and column indices start at 0."""


def parse_response_text(text: Optional[str]) -> AnalysisResult:
    """
    Decode the model's text reply into an AnalysisResult.

    Raises:
        AnalysisGenericError: If the text is not valid JSON of the expected shape.
    """
    text = (text or "{}").strip()
    if text.startswith("```"):
        text = text[3:]
        if text.endswith("```"):
            text = text[:-3]
        if text.startswith("json"):
            text = text[4:]
        text = text.strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise AnalysisGenericError(f"Analysis response is not valid JSON: {e}") from e
    return AnalysisResult.from_payload(data)


class OpenAIVisionAnalyzer:
    """Analyzer backed by an OpenAI vision-capable chat model."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: Optional[str] = None,
        max_tokens: int = 800,
        temperature: float = 0.4,
    ) -> None:
        """
        Args:
            model: Chat model name.
            api_key: Explicit key; None reads OPENAI_API_KEY on every call.
            max_tokens: Completion length cap.
            temperature: Sampling temperature.
        """
        self.model = model
        self.api_key = api_key
        self.max_tokens = max_tokens
        self.temperature = temperature

    def _resolve_key(self) -> str:
        key = self.api_key or os.getenv(API_KEY_ENV)
        if not key:
            raise AnalysisCredentialError(f"No API key configured ({API_KEY_ENV}).")
        return key

    async def analyze(self, image: str, grid_size: int) -> AnalysisResult:
        # A fresh client per call picks up a key selected since the last call.
        api_key = self._resolve_key()
        if image.startswith("data:"):
            image_url = image
        else:
            image_url = f"data:image/jpeg;base64,{image}"

        try:
            async with openai.AsyncOpenAI(api_key=api_key) as client:
                resp = await client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {
                            "role": "user",
                            "content": [
                                {"type": "text", "text": build_prompt(grid_size)},
                                {"type": "image_url", "image_url": {"url": image_url}},
                            ],
                        }
                    ],
                    response_format={"type": "json_object"},
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                )
        except (
            openai.AuthenticationError,
            openai.PermissionDeniedError,
            openai.NotFoundError,
        ) as e:
            logger.warning("Vision analysis rejected the credential: %s", e)
            raise AnalysisCredentialError(str(e)) from e
        except openai.OpenAIError as e:
            logger.warning("Vision analysis failed: %s", e)
            raise AnalysisGenericError(str(e)) from e

        if not resp.choices:
            raise AnalysisGenericError("Analysis response has no choices.")
        return parse_response_text(resp.choices[0].message.content)
