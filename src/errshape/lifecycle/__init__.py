"""Process lifecycle: graceful and forced shutdown."""

from errshape.lifecycle.hooks import install_process_hooks
from errshape.lifecycle.shutdown import DEFAULT_GRACE_SECONDS, Lifecycle, ShutdownCoordinator

__all__ = [
    "DEFAULT_GRACE_SECONDS",
    "Lifecycle",
    "ShutdownCoordinator",
    "install_process_hooks",
]
