"""
Rastreabilidade do thai_lexflow.

- events   → protocolo `on_event(stage, payload)` e observadores
- manifest → Run Manifest v1 (estado por Step + Event Log, round-trip JSON)
"""

from .events import (  # noqa: F401
    STAGES,
    CompositeObserver,
    EventObserver,
    LoggingObserver,
    ManifestObserver,
    NullObserver,
    RecordingObserver,
    apply_log_level,
    build_observer,
)
from .manifest import RunManifest, create_manifest, load_manifest, save_manifest  # noqa: F401
