"""
Browser-based authentication brokers.

A broker drives the user through an interactive Shell page and returns the URL
the browser ended on once it matches the caller's success predicate.
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from abc import ABC, abstractmethod
from typing import Callable

from healthvault.core.exceptions import OperationCancelled

logger = logging.getLogger(__name__)

SuccessPredicate = Callable[[str], bool]


class BrowserAuthBroker(ABC):
    """Contract for driving an interactive browser round-trip."""

    @abstractmethod
    async def authenticate(self, url: str, success_predicate: SuccessPredicate) -> str:
        """Open ``url`` and return the first URL that satisfies ``success_predicate``.

        Raises ``OperationCancelled`` when the user aborts.
        """


class ConsoleBrowserAuthBroker(BrowserAuthBroker):
    """Open the system browser and ask the user to paste the final address."""

    def __init__(
        self,
        *,
        open_browser: Callable[[str], bool] = webbrowser.open,
        prompt: Callable[[str], str] = input,
    ) -> None:
        self._open_browser = open_browser
        self._prompt = prompt

    async def authenticate(self, url: str, success_predicate: SuccessPredicate) -> str:
        if not self._open_browser(url):
            print(f"Open this address in a browser to continue:\n  {url}")

        while True:
            try:
                answer = await asyncio.to_thread(
                    self._prompt, "Paste the address shown after sign-in (blank to cancel): "
                )
            except EOFError as exc:
                raise OperationCancelled("Sign-in was cancelled.") from exc

            answer = answer.strip()
            if not answer:
                raise OperationCancelled("Sign-in was cancelled.")
            if success_predicate(answer):
                return answer
            logger.info("Address did not complete the sign-in flow; asking again")


__all__ = ["BrowserAuthBroker", "ConsoleBrowserAuthBroker", "SuccessPredicate"]
