from typing import Optional

from bizledger import settings
from bizledger.advisor import HealthAdvisor
from bizledger.advisors.gemini import GeminiAdvisor
from bizledger.advisors.heuristic import HeuristicAdvisor

# --- Advisor Registry ---
# To add a backend, add an entry here and select it with ADVISOR_BACKEND.
ADVISOR_REGISTRY = {
    "gemini": GeminiAdvisor,
    "heuristic": HeuristicAdvisor,
}


def get_advisor(backend: Optional[str] = None, **kwargs) -> HealthAdvisor:
    name = (backend or settings.ADVISOR_BACKEND).lower()
    try:
        advisor_class = ADVISOR_REGISTRY[name]
    except KeyError:
        raise ValueError(
            f"Unknown advisor backend '{name}'. Choose one of: {', '.join(ADVISOR_REGISTRY)}"
        ) from None
    return advisor_class(**kwargs)


__all__ = ["ADVISOR_REGISTRY", "GeminiAdvisor", "HeuristicAdvisor", "get_advisor"]
