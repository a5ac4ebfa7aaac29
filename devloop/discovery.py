"""Convergent context discovery.

The oracle is asked, round after round, which catalog entries it still needs.
Named entries are fetched and merged into a :class:`ContextSnapshot` until the
oracle replies with the ``no more files`` sentinel or the round cap is hit.
"""
from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from devloop import prompts
from devloop.adapters.llm_base import LLMAdapter
from devloop.errors import OracleResponseError
from devloop.gates.parsers import ExtractionResult, try_extract_json
from devloop.models import ContextSnapshot, DiscoveryResult
from devloop.utils import log

SENTINEL = "no more files"

Fetcher = Callable[[str], str]


def signals_done(raw_text: str, extraction: Optional[ExtractionResult] = None) -> bool:
    """True when the sentinel occurs outside any JSON array the reply carries.

    A path inside the returned array that happens to contain the phrase is a
    request, not a stop signal.
    """
    if SENTINEL not in raw_text.lower():
        return False
    if extraction is None:
        extraction = try_extract_json(raw_text)
    if not extraction.is_array or extraction.span is None:
        return True
    start, end = extraction.span
    outside = extraction.source[:start] + extraction.source[end:]
    return SENTINEL in outside.lower()


class ContextDiscovery:
    def __init__(
        self,
        oracle: LLMAdapter,
        fetch: Fetcher,
        max_rounds: int = 10,
        label: str = "discovery",
        task: str = prompts.DEVELOPMENT_TASK,
    ) -> None:
        if max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")
        self.oracle = oracle
        self.fetch = fetch
        self.max_rounds = max_rounds
        self.label = label
        self.task = task

    def run(
        self,
        catalog: Sequence[str],
        snapshot: Optional[ContextSnapshot] = None,
        framing: str = "",
    ) -> DiscoveryResult:
        snapshot = snapshot if snapshot is not None else ContextSnapshot()
        known = set(catalog)
        fetched: List[str] = []
        rejected: List[str] = []

        if all(snapshot.is_requested(item) for item in catalog):
            log.debug(self.label, "every catalog entry is already in context, skipping discovery")
            return DiscoveryResult(snapshot=snapshot, rounds=0, converged=True)

        for round_number in range(1, self.max_rounds + 1):
            prompt = prompts.file_request_prompt(catalog, snapshot, framing, task=self.task)
            log.debug(self.label, f"file request prompt (round {round_number}):\n{prompt}")

            response = self.oracle.generate(prompt)
            log.debug(self.label, f"oracle response (round {round_number}): {response}")
            if not response:
                raise OracleResponseError("Failed to get a file list from the oracle.")

            extraction = try_extract_json(response)
            if signals_done(response, extraction):
                log.info(self.label, f"context complete after {round_number} round(s)")
                return DiscoveryResult(
                    snapshot=snapshot,
                    rounds=round_number,
                    converged=True,
                    fetched=fetched,
                    rejected=rejected,
                )

            if not extraction.is_array:
                log.warning(self.label, f"oracle did not return a valid array of files: {response}")
                if extraction.error:
                    log.debug(self.label, f"extraction error: {extraction.error}")
                continue

            for name in self._new_identifiers(extraction.data, known, snapshot, rejected):
                content = self.fetch(name)
                snapshot.record(name, content)
                fetched.append(name)
                log.debug(self.label, f"fetched {name} ({len(content)} chars)")

        log.warning(
            self.label,
            f"no '{SENTINEL}' signal after {self.max_rounds} round(s); "
            f"proceeding with {len(snapshot.contents)} file(s) of partial context",
        )
        return DiscoveryResult(
            snapshot=snapshot,
            rounds=self.max_rounds,
            converged=False,
            fetched=fetched,
            rejected=rejected,
        )

    def _new_identifiers(
        self,
        names: list,
        known: set,
        snapshot: ContextSnapshot,
        rejected: List[str],
    ) -> List[str]:
        fresh: List[str] = []
        for name in names:
            if not isinstance(name, str):
                log.warning(self.label, f"ignoring non-string file entry: {name!r}")
                continue
            name = name.strip()
            if name not in known:
                if name not in snapshot.rejected:
                    log.warning(self.label, f"oracle requested unknown file, rejecting: {name}")
                    rejected.append(name)
                snapshot.reject(name)
                continue
            if snapshot.is_requested(name) or name in fresh:
                continue
            fresh.append(name)
        return fresh
