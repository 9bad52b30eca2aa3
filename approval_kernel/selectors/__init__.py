"""Read-only selectors."""

from approval_kernel.selectors.queue_selector import QueueSelector

__all__ = ["QueueSelector"]
