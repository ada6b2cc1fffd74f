"""deploysync - keep a desired-state object in line with GitHub deployments.

deploysync polls GitHub Deployments for new deployment requests and merges
them into a single desired-state document that a deployment controller
consumes. Progress is reported back to GitHub through deployment statuses.

Main features:
- ETag-aware polling of the GitHub Deployments API
- Idempotent merging of deployment events into the desired state
- Kubernetes custom object or local file state stores
- Exponential backoff around the whole reconciliation loop
"""

from deploysync.lib.errors import DeploySyncError, InvalidConfigError, NotFoundError

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "DeploySyncError",
    "InvalidConfigError",
    "NotFoundError",
]
