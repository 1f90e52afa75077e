"""Stack Exchange search for questions resembling an error."""

from __future__ import annotations

import html
import re
from collections import defaultdict
from datetime import UTC, datetime
from typing import Any, Callable, Dict, List, Mapping, Sequence

from ..config import SearchConfig
from ..http import TransportError, get_json
from ..logging import get_logger
from .reasoning import InsightError

ANSWER_SEPARATOR = "\n\n---\n\n"
QUESTION_SEPARATOR = "\n\n==========\n\n"

_ANSWER_PAGE_SIZE = 100

_PRE_BLOCK = re.compile(r"<pre[^>]*>\s*<code[^>]*>(.*?)</code>\s*</pre>", re.DOTALL | re.IGNORECASE)
_INLINE_CODE = re.compile(r"<code[^>]*>(.*?)</code>", re.DOTALL | re.IGNORECASE)
_LINE_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)
_PARAGRAPH_END = re.compile(r"</p\s*>", re.IGNORECASE)
_LIST_ITEM = re.compile(r"<li[^>]*>", re.IGNORECASE)
_LIST_ITEM_END = re.compile(r"</li\s*>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]+>")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")


def html_to_text(body: str) -> str:
    """Strip markup from an answer body, keeping code blocks as fenced code."""
    text = _PRE_BLOCK.sub(_fence, body)
    text = _INLINE_CODE.sub(lambda match: f"`{match.group(1)}`", text)
    text = _LINE_BREAK.sub("\n", text)
    text = _PARAGRAPH_END.sub("\n\n", text)
    text = _LIST_ITEM.sub("- ", text)
    text = _LIST_ITEM_END.sub("\n", text)
    text = _TAG.sub("", text)
    text = html.unescape(text)
    text = _EXTRA_NEWLINES.sub("\n\n", text)
    return text.strip()


def _fence(match: re.Match[str]) -> str:
    code = match.group(1).strip("\n")
    return f"\n```\n{code}\n```\n"


def format_date(timestamp: int | None) -> str:
    moment = datetime.fromtimestamp(timestamp or 0, UTC)
    return f"{moment:%b} {moment.day}, {moment.year}"


class StackExchangeClient:
    """Searches a Stack Exchange site and renders the best answers as text.

    Two answer policies are supported. ``all`` fetches the top-voted answers
    of every matched question (highest score first, the accepted one marked);
    ``accepted`` fetches only each question's accepted answer.
    """

    def __init__(
        self,
        config: SearchConfig | None = None,
        *,
        fetch: Callable[..., Any] | None = None,
    ) -> None:
        self.config = config or SearchConfig()
        self._fetch = fetch or get_json
        self.logger = get_logger("insights.search")

    def search(self, query: str) -> str:
        """Return formatted discussions for ``query`` or ``""`` when nothing matched."""
        questions = self._questions(query)
        if not questions:
            self.logger.info("No Stack Exchange questions found for query")
            return ""

        if self.config.answer_strategy == "accepted":
            answers_by_question = self._accepted_answers(questions)
        else:
            answers_by_question = self._top_answers(questions)

        blocks = []
        for question in questions:
            answers = answers_by_question.get(question.get("question_id"), [])
            if not answers:
                continue
            blocks.append(self._format_question(question, answers))

        if not blocks:
            self.logger.info("Matched questions had no retrievable answers")
            return ""
        return QUESTION_SEPARATOR.join(blocks)

    # ------------------------------------------------------------------
    # Requests

    def _questions(self, query: str) -> List[Dict[str, Any]]:
        params = self._params(
            q=query,
            order="desc",
            sort="votes",
            accepted="True",
            pagesize=self.config.page_size,
            filter="default",
        )
        payload = self._get("/search/advanced", params)
        return _items(payload)[: self.config.page_size]

    def _top_answers(self, questions: Sequence[Mapping[str, Any]]) -> Dict[Any, List[Dict[str, Any]]]:
        ids = ";".join(str(question["question_id"]) for question in questions if "question_id" in question)
        if not ids:
            return {}
        params = self._params(
            order="desc",
            sort="votes",
            pagesize=_ANSWER_PAGE_SIZE,
            filter="withbody",
        )
        answers = _items(self._get(f"/questions/{ids}/answers", params))

        grouped: Dict[Any, List[Dict[str, Any]]] = defaultdict(list)
        for answer in answers:
            grouped[answer.get("question_id")].append(answer)
        for question_id, items in grouped.items():
            items.sort(key=lambda item: item.get("score") or 0, reverse=True)
            grouped[question_id] = items[: self.config.answers_per_question]
        return dict(grouped)

    def _accepted_answers(self, questions: Sequence[Mapping[str, Any]]) -> Dict[Any, List[Dict[str, Any]]]:
        accepted_ids = [
            str(question["accepted_answer_id"])
            for question in questions
            if question.get("accepted_answer_id")
        ]
        if not accepted_ids:
            return {}
        params = self._params(filter="withbody", pagesize=_ANSWER_PAGE_SIZE)
        answers = _items(self._get(f"/answers/{';'.join(accepted_ids)}", params))
        return {answer.get("question_id"): [answer] for answer in answers}

    def _get(self, path: str, params: Mapping[str, object]) -> Any:
        try:
            return self._fetch(
                f"{self.config.base_url}{path}",
                params=params,
                timeout=self.config.request_timeout,
            )
        except TransportError as exc:
            raise InsightError(f"Stack Exchange request failed: {exc}") from exc

    def _params(self, **extra: object) -> Dict[str, object]:
        params: Dict[str, object] = {"site": self.config.site}
        if self.config.api_key:
            params["key"] = self.config.api_key
        params.update(extra)
        return params

    # ------------------------------------------------------------------
    # Rendering

    @staticmethod
    def _format_question(question: Mapping[str, Any], answers: Sequence[Mapping[str, Any]]) -> str:
        accepted_id = question.get("accepted_answer_id")
        rendered_answers = []
        for answer in answers:
            label = "✓ Accepted Answer" if answer.get("answer_id") == accepted_id else "Answer"
            rendered_answers.append(
                f"{label} (Score: {answer.get('score') or 0} | "
                f"Posted: {format_date(answer.get('creation_date'))}):\n"
                f"{html_to_text(answer.get('body') or '')}"
            )

        title = html.unescape(question.get("title") or "Untitled")
        tags = ", ".join(question.get("tags") or [])
        header = (
            f"Question: {title}\n"
            f"Score: {question.get('score') or 0} | Tags: {tags} | "
            f"Posted: {format_date(question.get('creation_date'))}\n"
            f"{question.get('link') or ''}"
        )
        return f"{header}\n\n{ANSWER_SEPARATOR.join(rendered_answers)}"


def _items(payload: Any) -> List[Dict[str, Any]]:
    if not isinstance(payload, dict):
        raise InsightError("Stack Exchange returned an unexpected payload")
    items = payload.get("items")
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


__all__ = [
    "ANSWER_SEPARATOR",
    "QUESTION_SEPARATOR",
    "StackExchangeClient",
    "format_date",
    "html_to_text",
]
