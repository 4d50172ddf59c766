"""
Scan service: gate, router and tier mapping behind one object.

Built once from Settings and shared by every caller. The popup uses
ScanMode.POPUP (short deadline, current tab HTML); the interception page uses
ScanMode.PAGE (longer deadline, usually URL only).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from guardnet.agent_worker.coordinator import WorkerCoordinator, pipeline_worker_factory
from guardnet.agent_worker.messages import PredictRequest
from guardnet.agent_worker.router import RequestRouter
from guardnet.config.settings import Settings, get_settings
from guardnet.guardnet_logging import get_logger
from guardnet.ml.pipeline import PhishingPipeline
from guardnet.ml.score_tiers import Tier, score_to_percentage, score_to_tier
from guardnet.navigation.gate import NavigationGate

logger = get_logger(__name__)


class ScanMode(str, Enum):
    POPUP = "popup"
    PAGE = "page"


@dataclass(frozen=True)
class ScanResult:
    url: str
    success: bool
    score: float | None = None
    percentage: int | None = None
    tier: Tier | None = None
    error: str | None = None
    error_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["tier"] = self.tier.value if self.tier is not None else None
        return out


class ScanService:
    """Classifies URLs through the shared inference worker."""

    def __init__(
        self,
        router: RequestRouter,
        gate: NavigationGate,
        *,
        popup_timeout_sec: float,
        page_scan_timeout_sec: float,
        coordinator: WorkerCoordinator | None = None,
    ) -> None:
        self.router = router
        self.gate = gate
        self.coordinator = coordinator
        self._timeouts = {
            ScanMode.POPUP: popup_timeout_sec,
            ScanMode.PAGE: page_scan_timeout_sec,
        }

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ScanService":
        """Wire pipeline, coordinator, router and gate from Settings."""
        settings = settings or get_settings()
        pipeline = PhishingPipeline.from_paths(settings.model_path, settings.scaler_path)
        coordinator = WorkerCoordinator(pipeline_worker_factory(pipeline))
        router = RequestRouter(coordinator, default_timeout_sec=settings.popup_timeout_sec)
        gate = NavigationGate(settings.trusted_domains, settings.trusted_tlds)
        return cls(
            router,
            gate,
            popup_timeout_sec=settings.popup_timeout_sec,
            page_scan_timeout_sec=settings.page_scan_timeout_sec,
            coordinator=coordinator,
        )

    def should_scan(self, url: str, is_main_frame: bool = True) -> bool:
        return self.gate.should_intercept(url, is_main_frame)

    async def scan(
        self,
        url: str,
        content: str = "",
        mode: ScanMode = ScanMode.POPUP,
    ) -> ScanResult:
        """Classify url (and optional HTML content). Failures come back in the result."""
        response = await self.router.send(
            PredictRequest(url=url, content=content or ""),
            timeout_sec=self._timeouts[mode],
        )
        if not response.success:
            logger.warning(
                "scan_failed",
                url=url,
                mode=mode.value,
                error=response.error,
                error_code=response.error_code,
            )
            return ScanResult(
                url=url,
                success=False,
                error=response.error,
                error_code=response.error_code,
            )
        score = float(response.score)
        result = ScanResult(
            url=url,
            success=True,
            score=score,
            percentage=score_to_percentage(score),
            tier=score_to_tier(score),
        )
        logger.info(
            "scan_done",
            url=url,
            mode=mode.value,
            percentage=result.percentage,
            tier=result.tier.value,
        )
        return result

    async def close(self) -> None:
        if self.coordinator is not None:
            await self.coordinator.shutdown()
