from __future__ import annotations

"""
Transport-adapter interface shared by every completion provider.

Concrete transports only translate one `ResolvedInvocation` into the
provider's wire call and normalize the reply into a `RawCompletion`.
Timeout, retries, latency measurement and error classification live in the
invoker so provider differences stop here.
"""

from abc import ABC, abstractmethod

from ..config import ProviderConfig
from ..types import ProviderId, RawCompletion, ResolvedInvocation


class CompletionTransport(ABC):
    """One provider's `send(invocation) -> RawCompletion` adapter."""

    def __init__(self, config: ProviderConfig) -> None:
        self.config = config

    @property
    @abstractmethod
    def provider_id(self) -> ProviderId:
        """Provider this transport talks to."""

    @abstractmethod
    async def send(self, invocation: ResolvedInvocation) -> RawCompletion:
        """Issue one completion call. `latency_ms` is filled in by the invoker."""

    async def aclose(self) -> None:
        """Release SDK clients held by the transport."""
        return None
