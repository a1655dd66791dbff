"""
Poll-driven retrieval state machine.

Drives one provider through its asynchronous result-generation protocol::

    INIT → REQUESTING_INITIAL → EXTRACTING_SESSION → POLLING → FINISHED
                                                           ↘ RETRY_EXHAUSTED

- The bootstrap GET is never retried; a transport failure is terminal.
- Each poll POST echoes the session fields as a form body together with the
  running cookie set. New Set-Cookie values are merged after every response.
- An unfinished response costs one attempt from the budget and is followed
  by a fixed delay. Transport or payload-format failures while polling are
  terminal and do not count against the budget.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from .config import FinderConfig, get_config
from .cookies import merge_cookies
from .errors import ConfigurationError, FinderError, RetryBudgetExhausted
from .poll import PollData, parse_poll_payload
from .providers import ProviderProfile
from .retry import PollBudget
from .session import extract_session_fields
from .transport import Transport

logger = logging.getLogger(__name__)


class RetrievalState(str, Enum):
    INIT = "init"
    REQUESTING_INITIAL = "requesting_initial"
    EXTRACTING_SESSION = "extracting_session"
    POLLING = "polling"
    FINISHED = "finished"
    RETRY_EXHAUSTED = "retry_exhausted"
    FAILED = "failed"


@dataclass(frozen=True)
class RetrievalResult:
    """Terminal poll payload plus what it took to get there."""
    poll: PollData
    retries: int
    attempts: int
    cookies: str
    session: Dict[str, str]


class PollingRetriever:
    """
    Runs the bootstrap → extract → poll sequence for one search.

    Args:
        profile: Provider family being queried
        transport: Issues the HTTP requests
        base_url: Portal base URL (poll endpoint is derived from it)
        max_retries: Unfinished responses tolerated before giving up
        poll_interval: Delay between poll attempts in seconds
        sleep: Sleep function (for tests)

    Raises:
        ConfigurationError: If ``max_retries`` is below one
    """

    def __init__(
        self,
        profile: ProviderProfile,
        transport: Transport,
        *,
        base_url: Optional[str] = None,
        max_retries: Optional[int] = None,
        poll_interval: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        config: Optional[FinderConfig] = None,
    ):
        config = config or get_config()
        self.profile = profile
        self.transport = transport
        self.base_url = base_url if base_url is not None else config.base_url
        self.max_retries = max_retries if max_retries is not None else config.max_poll_retries
        self.poll_interval = poll_interval if poll_interval is not None else config.poll_interval_seconds
        self.sleep = sleep
        self.state = RetrievalState.INIT

        if self.max_retries < 1:
            raise ConfigurationError("max_retries", self.max_retries, "at least one poll attempt is required")

    def _enter(self, state: RetrievalState) -> None:
        logger.debug(f"[{self.profile.name}] {self.state.value} -> {state.value}")
        self.state = state

    def run(self, search_url: str) -> RetrievalResult:
        """
        Retrieve the terminal poll payload for a search URL.

        Raises:
            TransportError: Bootstrap or poll request failed
            SessionExtractionError: Bootstrap page lacks the session fields
            ProtocolFormatError: A poll payload is malformed
            RetryBudgetExhausted: Never finished within ``max_retries`` attempts
        """
        try:
            return self._run(search_url)
        except RetryBudgetExhausted:
            self._enter(RetrievalState.RETRY_EXHAUSTED)
            raise
        except FinderError:
            self._enter(RetrievalState.FAILED)
            raise

    def _run(self, search_url: str) -> RetrievalResult:
        self._enter(RetrievalState.REQUESTING_INITIAL)
        bootstrap = self.transport.get(search_url)

        self._enter(RetrievalState.EXTRACTING_SESSION)
        session = extract_session_fields(bootstrap.text, self.profile.session_fields)

        self._enter(RetrievalState.POLLING)
        cookies = bootstrap.cookies
        poll_url = self.profile.poll_url(self.base_url)
        budget = PollBudget(max_attempts=self.max_retries, interval=self.poll_interval, sleep=self.sleep)

        for attempt in budget:
            reply = self.transport.post_form(
                poll_url, session, cookies=cookies, referer=search_url, attempt=attempt
            )
            cookies = merge_cookies(cookies, reply.cookies)
            poll = parse_poll_payload(reply.text, always_finished=self.profile.always_finished)
            logger.debug(
                f"[{self.profile.name}] poll attempt {attempt}: finished={poll.finished} count={poll.count}"
            )
            if poll.finished:
                self._enter(RetrievalState.FINISHED)
                return RetrievalResult(
                    poll=poll,
                    retries=attempt - 1,
                    attempts=attempt,
                    cookies=cookies,
                    session=session,
                )

        logger.warning(
            f"[{self.profile.name}] results not finished after {self.max_retries} poll attempts"
        )
        raise RetryBudgetExhausted(self.max_retries)


__all__ = [
    "RetrievalState",
    "RetrievalResult",
    "PollingRetriever",
]
