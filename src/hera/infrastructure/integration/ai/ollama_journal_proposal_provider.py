"""Ollama-based journal proposal provider.

This module implements the JournalProposalProvider interface using Ollama,
a self-hosted LLM runtime. The model is shown the finance event and the
tenant's chart of accounts and asked for balanced journal lines.

Recommended models (in order of size/quality):
- qwen2.5:3b    (2GB)  - Default, good JSON discipline
- llama3.2:3b   (2GB)  - Alternative with good multilingual support
- mistral:7b    (4GB)  - Best accuracy for complex cases
"""

import json
import logging
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from hera.domain.posting.services import JournalProposalProvider
from hera.domain.posting.value_objects import (
    GLAccount,
    JournalProposal,
    ProposedLine,
    UniversalFinanceEvent,
)

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


class OllamaJournalProposalProvider(JournalProposalProvider):
    """
    Journal proposal provider using Ollama for self-hosted LLM inference.

    Proposals that reference accounts outside the chart, or that cannot be
    parsed, are discarded. Balance and confidence floor are enforced by the
    caller, never corrected here.
    """

    DEFAULT_PROMPT_TEMPLATE = """You are a bookkeeping assistant producing double-entry journal lines.

FINANCE EVENT:
- Type: {transaction_type}
- Smart code: {smart_code}
- Reference: {transaction_code}
- Date: {transaction_date}
- Amount: {total_amount} {currency}
- Channel: {channel}

CHART OF ACCOUNTS:
{accounts_list}

TASK: Propose the journal lines for this event. Debits must equal credits.
Use ONLY account codes from the chart above.

Respond with ONLY this JSON format, no additional text:
{{"lines": [{{"account_code": "XXXX", "side": "debit", "amount": 0.00}}, {{"account_code": "YYYY", "side": "credit", "amount": 0.00}}], "confidence": 0.X, "reason": "Brief explanation"}}

- confidence: Your certainty from 0.0 to 1.0 (use LOW confidence if unsure the event affects the ledger)
- reason: Brief explanation (1 sentence)
"""  # NOQA: E501

    def __init__(
        self,
        model: str = "qwen2.5:3b",
        base_url: str = "http://localhost:11434",
        timeout: float = 5.0,
        prompt_template: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._prompt_template = prompt_template or self.DEFAULT_PROMPT_TEMPLATE
        self._transport = transport

    @property
    def model_name(self) -> str:
        return self._model

    async def request_journal_proposal(
        self,
        event: UniversalFinanceEvent,
        chart_of_accounts: list[GLAccount],
    ) -> Optional[JournalProposal]:
        if not chart_of_accounts:
            logger.warning("No chart of accounts provided for journal proposal")
            return None

        try:
            return await self._propose_with_ollama(event, chart_of_accounts)
        except Exception as e:
            self._log_request_error(e)
            return None

    async def _propose_with_ollama(
        self,
        event: UniversalFinanceEvent,
        chart_of_accounts: list[GLAccount],
    ) -> Optional[JournalProposal]:
        prompt = self._build_prompt(event, chart_of_accounts)
        logger.debug("AI Prompt:\n%s", prompt)

        response_text = await self._call_ollama(prompt)
        if not response_text:
            return None

        logger.debug("AI Response: %s", response_text)
        return self._parse_response(response_text, chart_of_accounts)

    def _log_request_error(self, e: Exception) -> None:
        if isinstance(e, httpx.TimeoutException):
            logger.warning("Ollama request timed out after %.1fs", self._timeout)
        elif isinstance(e, httpx.ConnectError):
            logger.warning(
                "Could not connect to Ollama at %s. Is it running?",
                self._base_url,
            )
        else:
            logger.warning(
                "Journal proposal failed: %s (type: %s)",
                str(e) or repr(e),
                type(e).__name__,
            )

    def _build_prompt(
        self,
        event: UniversalFinanceEvent,
        accounts: list[GLAccount],
    ) -> str:
        accounts_list = "\n".join(f"- [{acc.code}] {acc.name}" for acc in accounts)
        return self._prompt_template.format(
            transaction_type=event.transaction_type,
            smart_code=event.smart_code,
            transaction_code=event.transaction_code or "(not provided)",
            transaction_date=event.transaction_date.isoformat(),
            total_amount=event.total_amount,
            currency=event.transaction_currency_code,
            channel=event.channel.value,
            accounts_list=accounts_list,
        )

    def _client(self, timeout: httpx.Timeout | float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    async def _call_ollama(self, prompt: str) -> Optional[str]:
        url = f"{self._base_url}/api/generate"

        payload = {
            "model": self._model,
            "prompt": prompt,
            "stream": False,
            "format": "json",
            "options": {
                "temperature": 0.1,  # Low temperature for consistent output
                "num_predict": 400,  # Limit response length
            },
        }

        timeout = httpx.Timeout(connect=2.0, read=self._timeout, write=5.0, pool=2.0)
        async with self._client(timeout) as client:
            response = await client.post(url, json=payload)
            response.raise_for_status()

            data = response.json()
            return data.get("response", "")

    def _parse_response(
        self,
        response_text: str,
        chart_of_accounts: list[GLAccount],
    ) -> Optional[JournalProposal]:
        json_data = self._extract_json(response_text)
        if not json_data:
            logger.debug("Could not parse AI response: %s", response_text[:100])
            return None

        account_by_code = {acc.code: acc for acc in chart_of_accounts}
        raw_lines = json_data.get("lines")
        if not isinstance(raw_lines, list) or not raw_lines:
            logger.debug("AI response without lines")
            return None

        lines = []
        for raw_line in raw_lines:
            line = self._parse_line(raw_line, account_by_code)
            if line is None:
                return None
            lines.append(line)

        try:
            confidence = float(json_data.get("confidence", 0.0))
        except (TypeError, ValueError):
            confidence = 0.0

        try:
            return JournalProposal(
                lines=lines,
                # Clamp confidence to valid range
                confidence=max(0.0, min(1.0, confidence)),
                reason=json_data.get("reason") or json_data.get("reasoning"),
            )
        except PydanticValidationError as e:
            logger.debug("AI proposal rejected by schema: %s", e)
            return None

    def _parse_line(
        self,
        raw_line: Any,
        account_by_code: dict[str, GLAccount],
    ) -> Optional[ProposedLine]:
        if not isinstance(raw_line, dict):
            return None

        account_code = str(raw_line.get("account_code", ""))
        account = account_by_code.get(account_code)
        if not account:
            logger.debug("AI suggested account outside the chart: %s", account_code)
            return None

        side = str(raw_line.get("side", "")).lower()
        amount = _to_amount(raw_line.get("amount"))
        # Also accept {"debit": x} / {"credit": x}
        if side not in {"debit", "credit"}:
            for candidate in ("debit", "credit"):
                if raw_line.get(candidate) is not None:
                    side, amount = candidate, _to_amount(raw_line[candidate])
                    break

        if side not in {"debit", "credit"} or amount is None or amount <= 0:
            logger.debug("AI line without a usable side/amount: %s", raw_line)
            return None

        return ProposedLine(
            account_code=account.code,
            account_name=account.name,
            side=side,
            amount=amount,
            description=raw_line.get("description"),
        )

    def _extract_json(self, text: str) -> Optional[dict]:
        # Try to find JSON in code blocks first
        json_match = re.search(r"```(?:json)?\s*(\{.*\})\s*```", text, re.DOTALL)
        if json_match:
            try:
                return json.loads(json_match.group(1))
            except json.JSONDecodeError:
                pass

        # Outermost braces; the answer nests line objects
        start, end = text.find("{"), text.rfind("}")
        if start != -1 and end > start:
            try:
                return json.loads(text[start : end + 1])
            except json.JSONDecodeError:
                pass

        return None

    async def health_check(self) -> bool:
        try:
            async with self._client(5.0) as client:
                response = await client.get(f"{self._base_url}/api/tags")
                if response.status_code != 200:
                    return False
                return self._is_model_in_list(response.json())

        except Exception as e:
            logger.debug("Ollama health check failed: %s", str(e))
            return False

    def _is_model_in_list(self, data: dict) -> bool:
        models = [m.get("name", "") for m in data.get("models", [])]
        model_available = any(
            self._model in model or model.startswith(self._model.split(":")[0])
            for model in models
        )

        if not model_available:
            logger.warning(
                "Model '%s' not found in Ollama. Available: %s",
                self._model,
                models,
            )

        return model_available


def _to_amount(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return None
