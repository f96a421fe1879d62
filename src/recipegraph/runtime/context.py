"""
Execution context for query processing.

Contains everything one request needs while its plan runs. A context is
created per request and never shared between requests.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field

from .store import DocumentStore


@dataclass
class ExecutionContext:
    """
    Context passed through the executor.

    Contains:
    - store: shared document store client (process-wide pool)
    - store_timeout: bounded wait for each store operation
    - max_concurrency: cap on in-flight store operations for this request
    - store_calls: number of store operations issued, for logs and tests
    """
    store: DocumentStore
    store_timeout: float = 5.0
    max_concurrency: int = 16
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    store_calls: int = 0
    semaphore: asyncio.Semaphore = field(init=False, repr=False)

    def __post_init__(self):
        self.semaphore = asyncio.Semaphore(self.max_concurrency)
