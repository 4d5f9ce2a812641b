"""
Builds the Gemini `generateContent` request body for a food photo.

The instruction text is a module constant. Nothing from the inbound request
other than the image bytes reaches the upstream body.
"""

from __future__ import annotations

import re
from typing import Any, Dict

IMAGE_MIME_TYPE = "image/jpeg"

GENERATION_CONFIG: Dict[str, Any] = {
    "temperature": 0.1,
    "maxOutputTokens": 2048,
}

FOOD_ANALYSIS_PROMPT = """Ты - эксперт по питанию и шеф-повар. Проанализируй фотографию еды и верни ответ строго в формате JSON.

Формат ответа:
{
  "dish_name": "название блюда на русском",
  "ingredients": ["ингредиент1", "ингредиент2"],
  "calories": число,
  "protein": число,
  "fat": число,
  "carbs": число,
  "confidence": число от 0 до 1,
  "description": "краткое описание на русском",
  "estimated_weight": число
}

Как анализировать:
1. Определи основные ингредиенты
2. Оцени размер порции в граммах
3. Учти способ приготовления
4. Оценивай калорийность и БЖУ реалистично
5. Если не уверен, ставь confidence ниже 0.5

Верни ТОЛЬКО JSON, без пояснений и markdown."""

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.*)$", re.DOTALL)


def strip_data_uri(image_b64: str) -> str:
    """Accepts raw base64 or a `data:image/...;base64,` URI and returns the raw base64."""
    cleaned = image_b64.strip()
    match = _DATA_URI_RE.match(cleaned)
    if match:
        return match.group("data")
    return cleaned


def build_generate_content_payload(image_b64: str) -> Dict[str, Any]:
    return {
        "contents": [
            {
                "parts": [
                    {"text": FOOD_ANALYSIS_PROMPT},
                    {
                        "inlineData": {
                            "mimeType": IMAGE_MIME_TYPE,
                            "data": strip_data_uri(image_b64),
                        }
                    },
                ]
            }
        ],
        "generationConfig": dict(GENERATION_CONFIG),
    }
