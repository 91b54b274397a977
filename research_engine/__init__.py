"""
Research engine package for the Perspective Research tool.

Import `ResearchOrchestrator` directly from here to simplify access:

```python
from research_engine import ResearchOrchestrator

orchestrator = ResearchOrchestrator()
report = orchestrator.conduct_research("Impact of sleep on memory consolidation", "normal", 3)
```
"""

from .errors import ResearchFault  # noqa: F401
from .research_orchestrator import ResearchOrchestrator  # noqa: F401
from .telemetry import CallbackObserver, ResearchObserver  # noqa: F401

__all__ = ["CallbackObserver", "ResearchFault", "ResearchObserver", "ResearchOrchestrator"]
