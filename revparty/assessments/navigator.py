# revparty/assessments/navigator.py

"""
Assessment runtime.

Drives which question is shown, routes on each selected answer (explicit
`nextQuestionId`, terminal `resultBucketKey`, or the next visible question by
order) and finalizes the flow: points assessments are submitted for scoring,
decision-tree assessments redirect straight to their result page.

The routing helpers at the top are pure; AssessmentNavigator wires them to
the session store, location and HTTP client.
"""

import logging
from enum import Enum
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlencode

from ..utils.browser import KeyValueStore, LocationProvider, MemoryStore, RecordingLocation
from ..utils.schemas import AnswerRouting, AssessmentAnswer, AssessmentConfig, AssessmentQuestion
from .client import AssessmentApiClient, ConfigNotFoundError, SubmissionError
from .session import clear_session_id, get_or_create_session_id
from .visibility import is_question_visible, parse_routing


class BrokenReferenceError(LookupError):
    """Routing or a condition names a question that does not exist."""


class NavigationDeadEndError(RuntimeError):
    """A decision-tree path ran out of questions without reaching a result."""


class NavigatorState(str, Enum):
    LOADING = "loading"
    NOT_FOUND = "not_found"
    AWAITING_ANSWER = "awaiting_answer"
    SUBMITTING = "submitting"
    SUBMISSION_FAILED = "submission_failed"
    TERMINATED = "terminated"
    RESET = "reset"


# -------------------------------------------------------------------------
# Pure routing helpers
# -------------------------------------------------------------------------

def bounded_scan(start: int, total: int, logger=None) -> Iterator[int]:
    """
    Candidate indexes from `start` forward. Each index is yielded at most once
    and never more than `total` indexes in one scan.
    """
    visited = set()
    index = start
    steps = 0
    while 0 <= index < total:
        steps += 1
        if index in visited or steps > total:
            if logger:
                logger.warning(f"Question scan aborted at index {index}: possible infinite loop")
            return
        visited.add(index)
        yield index
        index += 1


def find_next_visible(
    questions: Sequence[AssessmentQuestion],
    answers: Mapping[str, str],
    start: int,
    logger=None,
) -> Optional[int]:
    for index in bounded_scan(start, len(questions), logger):
        if is_question_visible(questions[index], answers, questions):
            return index
    return None


def resolve_entry_index(
    config: AssessmentConfig,
    questions: Sequence[AssessmentQuestion],
    answers: Mapping[str, str],
) -> Optional[int]:
    """Configured entry question if it exists and is visible, else the first visible by order."""
    if config.entry_question_id:
        for index, q in enumerate(questions):
            if q.id == config.entry_question_id and is_question_visible(q, answers, questions):
                return index
    return find_next_visible(questions, answers, 0)


def resolve_next_index(
    questions: Sequence[AssessmentQuestion],
    answers: Mapping[str, str],
    current_index: int,
    routing: AnswerRouting,
    logger=None,
) -> Optional[int]:
    start = current_index + 1
    if routing.next_question_id:
        target = next((i for i, q in enumerate(questions) if q.id == routing.next_question_id), None)
        if target is None:
            err = BrokenReferenceError(f"nextQuestionId {routing.next_question_id!r} not found")
            if logger:
                logger.warning(f"{err}; continuing from the next question in order")
        else:
            start = target
    return find_next_visible(questions, answers, start, logger)


def build_result_url(result_route: str, config_slug: str, bucket_key: str,
                     answers: Optional[Mapping[str, str]] = None) -> str:
    url = f"{result_route.rstrip('/')}/{config_slug}/{bucket_key}"
    if answers:
        url += "?" + urlencode([(f"q{qid}", aid) for qid, aid in answers.items()])
    return url


# -------------------------------------------------------------------------
# Stateful controller
# -------------------------------------------------------------------------

class AssessmentNavigator:
    def __init__(
        self,
        config_slug: str,
        api: Optional[AssessmentApiClient] = None,
        store: Optional[KeyValueStore] = None,
        location: Optional[LocationProvider] = None,
        announce: Optional[Callable[[str], None]] = None,
        notify: Optional[Callable[[str, str], None]] = None,
        result_route: str = "/resources",
        logger=None,
    ):
        self.config_slug = config_slug
        self.api = api
        self.store = store or MemoryStore()
        self.location = location or RecordingLocation()
        self._announce = announce
        self._notify = notify
        self.result_route = result_route
        self.logger = logger or logging.getLogger(__name__)

        self.config: Optional[AssessmentConfig] = None
        self.questions: List[AssessmentQuestion] = []
        self.all_answers: List[AssessmentAnswer] = []
        self.answers: Dict[str, str] = {}
        self.current_question_id: Optional[str] = None
        self.history: List[str] = []
        self.session_id: Optional[str] = None
        self.bucket: Optional[str] = None
        self.error: Optional[Exception] = None
        self.announcement: Optional[str] = None
        self.state = NavigatorState.LOADING
        self.transitions: List[NavigatorState] = [NavigatorState.LOADING]

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    async def load(self) -> NavigatorState:
        if self.api is None:
            raise RuntimeError("AssessmentNavigator.load needs an API client")

        try:
            config = await self.api.get_config_by_slug(self.config_slug)
            questions = await self.api.get_questions(config.id)
            answers = await self.api.get_answers(config.id)
        except ConfigNotFoundError as exc:
            self.logger.warning(f"Assessment {self.config_slug!r} not found: {exc}")
            self.error = exc
            self._set_state(NavigatorState.NOT_FOUND)
            return self.state

        return self.start(config, questions, answers)

    def start(self, config: AssessmentConfig, questions: Sequence[AssessmentQuestion],
              answers: Sequence[AssessmentAnswer]) -> NavigatorState:
        self.config = config
        self.questions = sorted(questions, key=lambda q: q.order)
        self.all_answers = list(answers)

        if not self.questions:
            self.error = ConfigNotFoundError(f"Assessment {self.config_slug!r} has no questions")
            self._set_state(NavigatorState.NOT_FOUND)
            return self.state

        self.session_id = get_or_create_session_id(self.store, self.config_slug)

        entry = resolve_entry_index(config, self.questions, self.answers)
        if entry is None:
            self.error = ConfigNotFoundError(f"Assessment {self.config_slug!r} has no visible question")
            self._set_state(NavigatorState.NOT_FOUND)
            return self.state

        self._go_to(entry)
        return self.state

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------
    @property
    def current_question(self) -> Optional[AssessmentQuestion]:
        return next((q for q in self.questions if q.id == self.current_question_id), None)

    def _index_of(self, question_id: Optional[str]) -> int:
        return next((i for i, q in enumerate(self.questions) if q.id == question_id), -1)

    def answer_options(self, question_id: Optional[str] = None) -> List[Tuple[AssessmentAnswer, str, Optional[str]]]:
        """(answer, display text, description) for a question, in order."""
        question_id = question_id or self.current_question_id
        options = sorted((a for a in self.all_answers if a.question_id == question_id), key=lambda a: a.order)
        out = []
        for answer in options:
            routing = parse_routing(answer.answer_value)
            out.append((answer, routing.text or answer.answer_text, routing.description))
        return out

    def progress(self) -> Tuple[int, int]:
        """(1-based position among visible questions, total)."""
        visible = [q for q in self.questions if is_question_visible(q, self.answers, self.questions)]
        position = next((i for i, q in enumerate(visible) if q.id == self.current_question_id), -1) + 1
        total = len(visible) if self.config and self.config.uses_points else len(self.questions)
        return position, total

    @property
    def is_busy(self) -> bool:
        return self.state in (NavigatorState.SUBMITTING, NavigatorState.TERMINATED)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def _set_state(self, state: NavigatorState) -> None:
        self.state = state
        self.transitions.append(state)

    def _say(self, message: str) -> None:
        self.announcement = message
        if self._announce:
            self._announce(message)

    def _go_to(self, index: int) -> None:
        question = self.questions[index]
        self.current_question_id = question.id
        if not self.history or self.history[-1] != question.id:
            self.history.append(question.id)
        self._set_state(NavigatorState.AWAITING_ANSWER)
        self._say(f"Navigating to question: {question.question_text}")

    def go_back(self) -> Optional[str]:
        if self.is_busy or len(self.history) < 2:
            return None
        self.history.pop()
        self.current_question_id = self.history[-1]
        question = self.current_question
        if question:
            self._say(f"Navigating to question: {question.question_text}")
        return self.current_question_id

    def reset(self) -> None:
        """Clear collected answers and return to the entry question."""
        self._set_state(NavigatorState.RESET)
        self.answers = {}
        self.history = []
        self.current_question_id = None
        self.bucket = None
        self.error = None

        entry = resolve_entry_index(self.config, self.questions, self.answers) if self.config else None
        if entry is None:
            self._set_state(NavigatorState.NOT_FOUND)
            return
        self._go_to(entry)

    # ------------------------------------------------------------------
    # Answer handling
    # ------------------------------------------------------------------
    async def handle_answer_click(self, question_id: str, answer_id: str) -> NavigatorState:
        if self.is_busy:
            self.logger.debug(f"Ignoring answer {answer_id}: navigator is {self.state.value}")
            return self.state
        if self.config is None:
            return self.state

        selected = next((a for a in self.all_answers if a.id == answer_id), None)
        if selected is None:
            self.logger.warning(f"Answer {answer_id} is not part of assessment {self.config_slug!r}")
            return self.state

        self.answers = {**self.answers, question_id: answer_id}

        routing = parse_routing(selected.answer_value)
        self._say(f"Selected answer: {routing.text or selected.answer_text}.")

        if routing.result_bucket_key:
            await self._finish(routing.result_bucket_key)
            return self.state

        current = self._index_of(question_id)
        next_index = resolve_next_index(self.questions, self.answers, current, routing, self.logger)
        await self._advance_or_finish(next_index)

        await self.revalidate()
        return self.state

    async def update_answers(self, changes: Mapping[str, str]) -> NavigatorState:
        """Apply an answer-map change made outside a click (e.g. restored or edited answers)."""
        if self.is_busy:
            return self.state
        self.answers = {**self.answers, **changes}
        await self.revalidate()
        return self.state

    async def revalidate(self) -> None:
        """Move on if the displayed question was hidden by the current answers."""
        if self.state != NavigatorState.AWAITING_ANSWER:
            return
        question = self.current_question
        if question is None or is_question_visible(question, self.answers, self.questions):
            return

        self.logger.info(f"Question {question.id} is no longer visible; re-routing")
        next_index = find_next_visible(self.questions, self.answers, self._index_of(question.id) + 1, self.logger)
        await self._advance_or_finish(next_index)

    async def _advance_or_finish(self, next_index: Optional[int]) -> None:
        if next_index is not None:
            self._go_to(next_index)
            return

        if self.config.uses_points:
            await self._submit()
            return

        err = NavigationDeadEndError("Decision tree ended without a result")
        self.logger.warning(f"{err}; resetting assessment {self.config_slug!r}")
        if self._notify:
            self._notify("Assessment path incomplete", "This path has no result yet. Starting over.")
        self.reset()

    async def _finish(self, bucket_key: str) -> None:
        if self.config.uses_points:
            await self._submit()
            return

        self.bucket = bucket_key
        self._set_state(NavigatorState.TERMINATED)
        self.location.navigate(build_result_url(self.result_route, self.config_slug, bucket_key, self.answers))

    async def _submit(self) -> None:
        if self.api is None:
            raise RuntimeError("Points scoring needs an API client to submit answers")

        self._set_state(NavigatorState.SUBMITTING)
        try:
            bucket = await self.api.submit(self.session_id, self.answers)
        except SubmissionError as exc:
            self.error = exc
            self._set_state(NavigatorState.SUBMISSION_FAILED)
            self.logger.error(f"Assessment submission failed: {exc}")
            if self._notify:
                self._notify("Submission Error", "Failed to submit assessment. Please try again.")
            raise

        self.bucket = bucket
        clear_session_id(self.store, self.config_slug)
        self.answers = {}
        self._set_state(NavigatorState.TERMINATED)
        self.location.navigate(build_result_url(self.result_route, self.config_slug, bucket))

    async def retry_submission(self) -> NavigatorState:
        if self.state != NavigatorState.SUBMISSION_FAILED:
            return self.state
        self.error = None
        await self._submit()
        return self.state
