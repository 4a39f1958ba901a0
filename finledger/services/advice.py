"""
Financial advice from a generative language model

The provider is an opaque HTTP API. Every failure on that side is
reported as UpstreamFailure so the caller can tell it apart from
our own errors.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from finledger import crud
from finledger.core.exceptions import StorageFailure, UpstreamFailure
from finledger.models.entry import EntryKind, LedgerEntry

logger = logging.getLogger(__name__)

PROMPT_HEADER = (
    "You are a personal finance assistant. Based on the following list of "
    "expenses, give short, practical advice on how the user could improve "
    "their spending habits.\n\nExpenses:\n"
)


def build_prompt(expenses: Iterable[LedgerEntry]) -> str:
    lines = []
    for expense in expenses:
        line = f"- Category: {expense.category}, Amount: {expense.amount}"
        if expense.description:
            line += f", Description: {expense.description}"
        lines.append(line)
    if not lines:
        lines.append("- No expenses recorded yet")
    return PROMPT_HEADER + "\n".join(lines)


def extract_advice(payload: Dict[str, Any]) -> str:
    """Concatenate the text parts of the first candidate"""
    try:
        parts = payload["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        raise UpstreamFailure("Advice provider returned no candidates")
    text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
    if not text.strip():
        raise UpstreamFailure("Advice provider returned an empty answer")
    return text.strip()


class AdviceClient:
    """Thin async client for the generateContent endpoint"""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        model: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._transport = transport

    async def generate(self, prompt: str) -> str:
        if not self.api_key:
            logger.error("Advice API key is not configured")
            raise UpstreamFailure("Advice provider is not configured")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        body = {"contents": [{"parts": [{"text": prompt}]}]}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, params={"key": self.api_key}, json=body)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Advice provider answered {e.response.status_code}")
            raise UpstreamFailure(f"Advice provider error: status {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"Network error calling advice provider: {e}")
            raise UpstreamFailure("Unable to reach advice provider") from e
        except ValueError as e:
            logger.error(f"Advice provider returned invalid JSON: {e}")
            raise UpstreamFailure("Advice provider returned invalid JSON") from e

        return extract_advice(payload)


class AdviceService:
    """Reads a user's expenses and asks the provider for advice"""

    def __init__(self, db: Session, client: AdviceClient):
        self.db = db
        self.client = client

    def _expenses(self, user_id: str) -> List[LedgerEntry]:
        try:
            return crud.entry.get_all_for_owner(self.db, EntryKind.EXPENSE, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch expenses for user {user_id}: {e}", exc_info=True)
            raise StorageFailure("Failed to fetch user expenses") from e

    async def advise(self, user_id: str) -> str:
        # session work stays off the event loop
        expenses = await run_in_threadpool(self._expenses, user_id)
        logger.debug(f"User {user_id} expenses fetched: {len(expenses)}")
        advice = await self.client.generate(build_prompt(expenses))
        logger.info(f"Financial advice generated for user {user_id}")
        return advice
