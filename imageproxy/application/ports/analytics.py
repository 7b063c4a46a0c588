from typing import Any, Dict, Optional, Protocol

from ...models import OptimizationEvent


class AnalyticsTracker(Protocol):
    @property
    def enabled(self) -> bool:
        ...

    async def track_optimization(self, event: OptimizationEvent) -> bool:
        ...

    async def track_health_check(self, status: str, details: Optional[Dict[str, Any]] = None) -> bool:
        ...
