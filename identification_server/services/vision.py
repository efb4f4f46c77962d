"""
Vision services: frame captioning and feature extraction.

- OpenAICaptioner: free-text scene description from a vision LLM (LiteLLM).
- GoogleVisionClient: labels, OCR text, faces, dominant colors (REST, httpx).
- CompositeVisionService: runs whichever of the two are configured
  concurrently and merges them into one FrameAnalysis.
"""

import asyncio
import base64
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
import litellm
from litellm import acompletion

from identification.errors import MissingAPIKeyError, ProviderError
from identification.models import BoundingBox, ColorInfo, FaceDetection, FrameAnalysis, Label

# Suppress LiteLLM's verbose logging
litellm.suppress_debug_info = True

logger = logging.getLogger(__name__)

GOOGLE_VISION_API_URL = "https://vision.googleapis.com/v1/images:annotate"

CAPTION_PROMPT = (
    "Analyze this video frame and provide a detailed description. Include:\n"
    "1. The scene setting and environment\n"
    "2. Any visible actors or people\n"
    "3. Notable objects or props\n"
    "4. Any visible text or titles\n"
    "5. The apparent genre and era of the film\n"
    "6. If you can identify the specific movie, mention it\n\n"
    "Be specific and detailed to help identify the film."
)

VISION_FEATURES = [
    {"type": "LABEL_DETECTION", "maxResults": 10},
    {"type": "TEXT_DETECTION", "maxResults": 10},
    {"type": "FACE_DETECTION", "maxResults": 10},
    {"type": "IMAGE_PROPERTIES", "maxResults": 5},
]


class OpenAICaptioner:
    """Scene captions from an OpenAI vision model through LiteLLM."""

    def __init__(self, api_key: str, model: str = "gpt-4o", timeout: float = 30.0, max_tokens: int = 500):
        if not api_key:
            raise MissingAPIKeyError("openai")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens

    async def caption(self, image_bytes: bytes) -> str:
        image_b64 = base64.b64encode(image_bytes).decode("ascii")
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": CAPTION_PROMPT},
                    {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{image_b64}"}},
                ],
            }
        ]
        try:
            response = await acompletion(
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                api_key=self.api_key,
                timeout=self.timeout,
            )
        except Exception as e:
            raise ProviderError(f"OpenAI caption request failed: {e}") from e

        choices = getattr(response, "choices", None) or []
        if not choices:
            raise ProviderError("No response from OpenAI")
        return (choices[0].message.content or "").strip()


def parse_vision_response(payload: Dict[str, Any]) -> Dict[str, List]:
    """
    Map an images:annotate response to labels, OCR lines, faces, and colors.

    Raises ProviderError for API-level or per-image errors.
    """
    if payload.get("error"):
        raise ProviderError(f"Google Vision API error: {payload['error'].get('message', '')}")
    responses = payload.get("responses") or []
    if not responses:
        raise ProviderError("No response from Google Vision API")
    response = responses[0]
    if response.get("error"):
        raise ProviderError(f"Google Vision API error: {response['error'].get('message', '')}")

    labels = [
        Label(name=a.get("description", ""), confidence=float(a.get("score", 0.0)))
        for a in response.get("labelAnnotations") or []
    ]

    # The first text annotation is the full block; the rest are its pieces.
    texts = response.get("textAnnotations") or []
    if len(texts) > 1:
        texts = texts[1:]
    ocr_lines = [t.get("description", "") for t in texts if t.get("description")]

    faces = []
    for face in response.get("faceAnnotations") or []:
        vertices = (face.get("boundingPoly") or {}).get("vertices") or []
        if len(vertices) < 4:
            continue
        xs = [v.get("x", 0) for v in vertices]
        ys = [v.get("y", 0) for v in vertices]
        faces.append(FaceDetection(
            box=BoundingBox(x=min(xs), y=min(ys), width=max(xs) - min(xs), height=max(ys) - min(ys)),
            confidence=float(face.get("detectionConfidence", 0.0)),
        ))

    colors = []
    dominant = ((response.get("imagePropertiesAnnotation") or {}).get("dominantColors") or {}).get("colors") or []
    for c in dominant:
        rgb = c.get("color") or {}
        colors.append(ColorInfo(
            color=f"rgb({int(rgb.get('red', 0))},{int(rgb.get('green', 0))},{int(rgb.get('blue', 0))})",
            score=float(c.get("score", 0.0)),
            pixel_ratio=float(c.get("pixelFraction", 0.0)),
        ))

    return {"labels": labels, "ocr_lines": ocr_lines, "faces": faces, "colors": colors}


class GoogleVisionClient:
    """Google Cloud Vision REST client (API key auth)."""

    def __init__(self, api_key: str, timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        if not api_key:
            raise MissingAPIKeyError("google_vision")
        self.api_key = api_key
        self.timeout = httpx.Timeout(timeout)
        self._client = client

    async def annotate(self, image_bytes: bytes) -> Dict[str, List]:
        body = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image_bytes).decode("ascii")},
                    "features": VISION_FEATURES,
                }
            ]
        }
        try:
            if self._client is not None:
                response = await self._client.post(GOOGLE_VISION_API_URL, params={"key": self.api_key}, json=body)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(GOOGLE_VISION_API_URL, params={"key": self.api_key}, json=body)
        except httpx.HTTPError as e:
            raise ProviderError(f"Google Vision request failed: {e}") from e
        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError(f"Malformed Google Vision response (status {response.status_code})") from e
        if response.status_code != 200 and not payload.get("error"):
            raise ProviderError(f"Google Vision API returned status {response.status_code}")
        return parse_vision_response(payload)


def analysis_confidence(analysis: FrameAnalysis) -> float:
    """0.4 caption + 0.3 * best label + 0.2 OCR + 0.1 faces."""
    confidence = 0.0
    if analysis.caption:
        confidence += 0.4
    if analysis.labels:
        confidence += 0.3 * max(label.confidence for label in analysis.labels)
    if analysis.ocr_lines:
        confidence += 0.2
    if analysis.faces:
        confidence += 0.1
    return min(confidence, 1.0)


class CompositeVisionService:
    """
    Vision provider combining the captioner and the feature extractor.

    Either half may be absent; a failing half is logged and the other half's
    output kept. The analysis fails only when every configured half fails.
    """

    def __init__(
        self,
        captioner: Optional[OpenAICaptioner] = None,
        features: Optional[GoogleVisionClient] = None,
    ):
        if captioner is None and features is None:
            raise MissingAPIKeyError("openai")
        self.captioner = captioner
        self.features = features

    @property
    def providers(self) -> List[str]:
        names = []
        if self.captioner is not None:
            names.append("openai")
        if self.features is not None:
            names.append("google_vision")
        return names

    async def analyze(self, image_bytes: bytes) -> FrameAnalysis:
        tasks = {}
        if self.captioner is not None:
            tasks["caption"] = self.captioner.caption(image_bytes)
        if self.features is not None:
            tasks["features"] = self.features.annotate(image_bytes)

        results = await asyncio.gather(*tasks.values(), return_exceptions=True)
        outcome = dict(zip(tasks.keys(), results))

        analysis = FrameAnalysis(analyzed_at=datetime.now(timezone.utc))
        errors = []

        caption = outcome.get("caption")
        if isinstance(caption, BaseException):
            logger.warning("[vision] caption failed: %s", caption)
            errors.append(caption)
        elif caption is not None:
            analysis.caption = caption

        features = outcome.get("features")
        if isinstance(features, BaseException):
            logger.warning("[vision] feature extraction failed: %s", features)
            errors.append(features)
        elif features is not None:
            analysis.labels = features["labels"]
            analysis.ocr_lines = features["ocr_lines"]
            analysis.faces = features["faces"]
            analysis.colors = features["colors"]

        if len(errors) == len(tasks):
            raise ProviderError(f"All vision providers failed: {errors[0]}") from errors[0]

        analysis.confidence = analysis_confidence(analysis)
        logger.info(
            "[vision] analyzed frame: %d labels, %d text lines, %d faces, confidence %.2f",
            len(analysis.labels), len(analysis.ocr_lines), len(analysis.faces), analysis.confidence,
        )
        return analysis
