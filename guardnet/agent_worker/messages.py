"""
Cross-context message contract.

Request  {"type": "PREDICT", "url": str, "content": str}
Response {"type": "PREDICT_RESULT", "success": true, "score": float}
       | {"type": "PREDICT_RESULT", "success": false, "error": str, "error_code": str}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

PREDICT = "PREDICT"
PREDICT_RESULT = "PREDICT_RESULT"


@dataclass(frozen=True)
class PredictRequest:
    url: str
    content: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"type": PREDICT, "url": self.url, "content": self.content}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PredictRequest":
        """Build from a PREDICT message; missing fields become empty strings."""
        return cls(
            url=str(data.get("url") or ""),
            content=str(data.get("content") or ""),
        )


@dataclass(frozen=True)
class PredictResponse:
    success: bool
    score: float | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, score: float) -> "PredictResponse":
        return cls(success=True, score=float(score))

    @classmethod
    def failure(cls, error: str, error_code: str = "error") -> "PredictResponse":
        return cls(success=False, error=error, error_code=error_code)

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"type": PREDICT_RESULT, "success": True, "score": self.score}
        return {
            "type": PREDICT_RESULT,
            "success": False,
            "error": self.error,
            "error_code": self.error_code,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PredictResponse":
        if data.get("success"):
            return cls.ok(float(data.get("score", 0.0)))
        return cls.failure(
            str(data.get("error") or "Prediction failed"),
            str(data.get("error_code") or "error"),
        )
