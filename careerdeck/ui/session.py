from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from careerdeck.ai.types import GenerativeClient
from careerdeck.core.config import Settings, settings
from careerdeck.core.context import UserContext
from careerdeck.core.errors import (
    AnalysisFailedError,
    CareerDeckError,
    EmptySubmissionError,
    InvalidTransitionError,
    SecondaryGenerationError,
)
from careerdeck.schemas import session as views
from careerdeck.schemas.career import DEFAULT_EXPERIENCE_LEVEL, UserInput
from careerdeck.services.analysis_requester import analyze_resume
from careerdeck.services.input_normalizer import NormalizedUpload, apply_upload, normalize_upload, truncate_resume_text
from careerdeck.services.metadata_extractor import extract_profile_metadata, merge_profile_metadata
from careerdeck.services.secondary import generate_cover_letter, generate_interview_prep
from careerdeck.ui import state as vs
from careerdeck.ui.cards import CardView, PanelKind
from careerdeck.ui.tickers import LoadingMessageRotator, ScoreReveal

logger = logging.getLogger(__name__)

QUERY_PARAM_KEYS = ("city", "experienceLevel", "mode")
VALID_MODES = ("fast", "search", "deep")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def encode_query_params(user_input: UserInput) -> dict[str, str]:
    return {
        "city": user_input.city,
        "experienceLevel": user_input.experience_level,
        "mode": user_input.mode,
    }


def input_from_query_params(params: Mapping[str, str] | None) -> UserInput:
    params = params or {}
    mode = params.get("mode") or "fast"
    return UserInput(
        city=(params.get("city") or "").strip(),
        experience_level=(params.get("experienceLevel") or DEFAULT_EXPERIENCE_LEVEL).strip(),
        mode=mode if mode in VALID_MODES else "fast",
    )


class ResumeSession:
    """One user's form, analysis and result view.

    Every asynchronous result is tagged with the generation that requested it and is
    dropped if the session has since moved on (reset, a newer upload or analysis).
    """

    def __init__(
        self,
        session_id: str,
        *,
        client: GenerativeClient,
        cfg: Settings | None = None,
        user: UserContext | None = None,
        query_params: Mapping[str, str] | None = None,
    ):
        self.session_id = session_id
        self._client = client
        self._cfg = cfg or settings
        self.user = user or UserContext()
        self.created_at = _utc_now()
        self.touched_at = self.created_at

        self.user_input = input_from_query_params(query_params)
        self.query_params: dict[str, str] = {
            key: value for key, value in (query_params or {}).items() if key in QUERY_PARAM_KEYS and value
        }
        self.view: vs.ViewState = vs.Idle()
        self.image_preview: str | None = None
        self.truncation_notice = False
        self.error_message = ""
        self.extracting = False
        self.autofilling = False

        self.sort_key: vs.SortKey = "match"
        self.sort_order: vs.SortOrder = "desc"
        self.active_tab: vs.ResultsTab = "jobs"
        self.cards: list[CardView] = []
        self._analyzed_input: UserInput | None = None

        self._epoch = 0
        self._upload_seq = 0
        self._analysis_task: asyncio.Task[None] | None = None
        self._autofill_task: asyncio.Task[None] | None = None
        self._card_tasks: set[asyncio.Task[None]] = set()

        self.loading = LoadingMessageRotator(vs.LOADING_MESSAGES, self._cfg.loading_message_interval_s)
        self.score_reveal = ScoreReveal(self._cfg.score_reveal_duration_s, self._cfg.score_reveal_steps)

    def touch(self) -> None:
        self.touched_at = _utc_now()

    # ---- input -------------------------------------------------------------

    def _require_form(self) -> None:
        if isinstance(self.view, (vs.Analyzing, vs.Results)):
            raise InvalidTransitionError(f"The input form is not available while in {self.view.name}.")

    def update_input(self, **fields: Any) -> UserInput:
        self._require_form()
        update = {key: value for key, value in fields.items() if value is not None}
        if "resume_text" in update:
            text, truncated = truncate_resume_text(str(update["resume_text"]), self._cfg.max_resume_length)
            update["resume_text"] = text
            self.truncation_notice = truncated
        self.user_input = UserInput.model_validate({**self.user_input.model_dump(), **update})
        return self.user_input

    async def upload(
        self,
        *,
        filename: str,
        content_type: str | None,
        content: bytes,
        profile_link: bool = False,
    ) -> NormalizedUpload:
        self._require_form()
        self.error_message = ""
        self.extracting = True
        try:
            upload = await normalize_upload(
                filename=filename,
                content_type=content_type,
                content=content,
                profile_link=profile_link,
                cfg=self._cfg,
            )
        except CareerDeckError as exc:
            self.error_message = str(exc)
            logger.info("upload_rejected session=%s code=%s", self.session_id, exc.code)
            raise
        finally:
            self.extracting = False

        self.user_input = apply_upload(self.user_input, upload)
        if upload.kind == "image":
            self.image_preview = upload.image_preview
            return upload

        self._upload_seq += 1
        self._cancel_autofill()
        self.image_preview = None
        self.truncation_notice = upload.truncated
        if upload.should_autofill:
            self._start_autofill(upload.text)
        return upload

    def clear_image(self) -> None:
        self._require_form()
        self.image_preview = None
        self.user_input = self.user_input.model_copy(update={"image_data": None, "image_mime_type": None})

    def _cancel_autofill(self) -> None:
        task = self._autofill_task
        if task is not None and not task.done() and not task.get_loop().is_closed():
            task.cancel()
        self.autofilling = False

    def _start_autofill(self, text: str) -> None:
        self.autofilling = True
        self._autofill_task = asyncio.get_running_loop().create_task(
            self._autofill(text, self._epoch, self._upload_seq)
        )

    async def _autofill(self, text: str, epoch: int, upload_seq: int) -> None:
        metadata = await extract_profile_metadata(text, self._client, cfg=self._cfg)
        if epoch != self._epoch or upload_seq != self._upload_seq:
            logger.info("autofill_discarded session=%s reason=stale", self.session_id)
            return
        self.autofilling = False
        self.user_input = merge_profile_metadata(self.user_input, metadata)

    async def wait_for_autofill(self) -> None:
        task = self._autofill_task
        if task is not None:
            await asyncio.wait({task})

    # ---- analysis ----------------------------------------------------------

    def start_analysis(self) -> asyncio.Task[None]:
        try:
            self.view = vs.begin_analysis(self.view, self.user_input)
        except EmptySubmissionError as exc:
            self.error_message = str(exc)
            raise
        generation = self.view.generation
        snapshot = self.user_input.model_copy()

        self.error_message = ""
        self.active_tab = "jobs"
        self.cards = []
        self.query_params = encode_query_params(snapshot)
        self.score_reveal.stop()
        self.loading.start()
        logger.info(
            "analysis_started session=%s generation=%s mode=%s",
            self.session_id,
            generation,
            snapshot.mode,
        )
        self._analysis_task = asyncio.get_running_loop().create_task(self._run_analysis(generation, snapshot))
        return self._analysis_task

    async def analyze(self, *, wait: bool = True) -> vs.ViewState:
        task = self.start_analysis()
        if wait:
            await asyncio.wait({task})
        return self.view

    async def _run_analysis(self, generation: int, user_input: UserInput) -> None:
        failure: AnalysisFailedError | None = None
        try:
            analysis = await analyze_resume(user_input, self._client, cfg=self._cfg)
        except AnalysisFailedError as exc:
            failure = exc

        if not vs.is_current(self.view, generation):
            logger.info("analysis_discarded session=%s generation=%s reason=stale", self.session_id, generation)
            return

        self.loading.stop()
        if failure is not None:
            self.view = vs.fail_analysis(self.view, generation, str(failure))
            self.error_message = str(failure)
            return

        self.view = vs.complete_analysis(self.view, generation, analysis)
        self._analyzed_input = user_input
        self.cards = [CardView(index=i, card=card) for i, card in enumerate(analysis.flashcards)]

    def reset(self) -> None:
        self._cancel_tasks()
        self.loading.stop()
        self.score_reveal.stop()
        self.view = vs.reset(self.view)
        self._epoch += 1
        self.cards = []
        self._analyzed_input = None
        self.truncation_notice = False
        self.error_message = ""
        self.image_preview = None
        self.autofilling = False
        self.extracting = False
        self.user_input = self.user_input.model_copy(
            update={
                "resume_text": "",
                "image_data": None,
                "image_mime_type": None,
                "years_experience": "",
                "more_roles": False,
            }
        )
        self.sort_key = "match"
        self.sort_order = "desc"
        self.active_tab = "jobs"
        self.query_params = {}
        logger.info("session_reset session=%s generation=%s", self.session_id, self.view.generation)

    def logout(self) -> None:
        self.user.logout()
        self.reset()

    def _cancel_tasks(self) -> None:
        for task in (self._analysis_task, self._autofill_task, *self._card_tasks):
            if task is not None and not task.done() and not task.get_loop().is_closed():
                task.cancel()
        self._analysis_task = None
        self._autofill_task = None
        self._card_tasks.clear()

    def close(self) -> None:
        self._cancel_tasks()
        self.loading.stop()
        self.score_reveal.stop()

    # ---- results -----------------------------------------------------------

    def _require_results(self) -> vs.Results:
        if not isinstance(self.view, vs.Results):
            raise InvalidTransitionError("No results are available yet.")
        return self.view

    def set_sort(self, key: vs.SortKey, order: vs.SortOrder) -> None:
        self.sort_key = key
        self.sort_order = order

    def toggle_sort_order(self) -> None:
        self.sort_order = "asc" if self.sort_order == "desc" else "desc"

    def display_cards(self) -> list[CardView]:
        ordered = vs.sorted_card_indices([view.card for view in self.cards], self.sort_key, self.sort_order)
        return [self.cards[i] for i in ordered]

    def set_tab(self, tab: vs.ResultsTab) -> None:
        results = self._require_results()
        self.active_tab = tab
        audit = results.analysis.resume_audit
        if tab == "resume" and audit is not None:
            self.score_reveal.start(audit.ats_compatibility_score)
        else:
            self.score_reveal.stop()

    def _card(self, index: int) -> CardView:
        self._require_results()
        if index < 0 or index >= len(self.cards):
            raise IndexError(f"Card {index} does not exist.")
        return self.cards[index]

    def toggle_card_expanded(self, index: int) -> CardView:
        self.cards[index] = self._card(index).toggled_expanded()
        return self.cards[index]

    async def toggle_card_panel(self, index: int, kind: PanelKind, *, wait: bool = True) -> CardView:
        card_view = self._card(index).with_panel(kind)
        content = card_view.content_for(kind)
        task: asyncio.Task[None] | None = None
        if card_view.panel == kind and content.needs_fetch:
            card_view = card_view.with_content(kind, content.loading())
            task = asyncio.get_running_loop().create_task(
                self._fetch_panel(self.view.generation, index, kind)
            )
            self._card_tasks.add(task)
            task.add_done_callback(self._card_tasks.discard)
        self.cards[index] = card_view
        if task is not None and wait:
            await asyncio.wait({task})
        return self.cards[index]

    async def _fetch_panel(self, generation: int, index: int, kind: PanelKind) -> None:
        role = self.cards[index].card.job_title
        resume_text = self._analyzed_input.resume_text if self._analyzed_input else ""
        current = self.cards[index].content_for(kind)
        try:
            if kind == "interview_prep":
                data: Any = await generate_interview_prep(role, resume_text, self._client, cfg=self._cfg)
            else:
                data = await generate_cover_letter(role, resume_text, self._client, cfg=self._cfg)
            content = current.ready(data)
        except SecondaryGenerationError as exc:
            content = current.failed(str(exc))

        if not isinstance(self.view, vs.Results) or self.view.generation != generation:
            logger.info("panel_discarded session=%s card=%s panel=%s reason=stale", self.session_id, index, kind)
            return
        self.cards[index] = self.cards[index].with_content(kind, content)

    # ---- snapshot ----------------------------------------------------------

    def snapshot(self) -> views.SessionView:
        user_input = self.user_input
        input_view = views.InputView(
            resume_text=user_input.resume_text,
            city=user_input.city,
            experience_level=user_input.experience_level,
            years_experience=user_input.years_experience,
            mode=user_input.mode,
            more_roles=user_input.more_roles,
            has_image=user_input.has_image,
            image_mime_type=user_input.image_mime_type,
            image_preview=self.image_preview,
            resume_length=len(user_input.resume_text),
            max_resume_length=self._cfg.max_resume_length,
            truncation_notice=self.truncation_notice,
        )
        payload: dict[str, Any] = {
            "session_id": self.session_id,
            "state": self.view.name,
            "generation": self.view.generation,
            "error_message": self.error_message,
            "loading_message": self.loading.message if isinstance(self.view, vs.Analyzing) else None,
            "extracting": self.extracting,
            "autofilling": self.autofilling,
            "theme": self.user.get_theme(),
            "user_email": self.user.user_email,
            "input": input_view,
            "query_params": dict(self.query_params),
            "sort": views.SortView(key=self.sort_key, order=self.sort_order),
            "active_tab": self.active_tab,
        }
        if isinstance(self.view, vs.Failed):
            payload["error_message"] = self.view.message
        if isinstance(self.view, vs.Results):
            analysis = self.view.analysis
            payload.update(
                summary_of_profile=analysis.summary_of_profile,
                overall_advice=analysis.overall_advice,
                disclaimer=analysis.disclaimer,
                grounding_urls=list(analysis.grounding_urls),
                demand_mix=vs.demand_mix(analysis.flashcards),
                cards=[self._card_snapshot(view) for view in self.display_cards()],
            )
            audit = analysis.resume_audit
            if audit is not None:
                revealing = self.active_tab == "resume" and self.score_reveal.running
                payload["resume_audit"] = views.AuditView(
                    ats_compatibility_score=audit.ats_compatibility_score,
                    displayed_score=self.score_reveal.value if revealing else audit.ats_compatibility_score,
                    revealing=revealing,
                    score_label=audit.score_label,
                    formatting_issues=audit.formatting_issues,
                    content_improvements=audit.content_improvements,
                    key_strengths=audit.key_strengths,
                )
        return views.SessionView(**payload)

    @staticmethod
    def _card_snapshot(view: CardView) -> views.CardView:
        return views.CardView(
            index=view.index,
            expanded=view.expanded,
            panel=view.panel,
            card=view.card,
            linkedin_search_url=view.card.linkedin_search_url,
            interview_prep=views.InterviewPrepPanelView(
                status=view.interview_prep.status,
                data=view.interview_prep.data,
                error=view.interview_prep.error,
            ),
            cover_letter=views.CoverLetterPanelView(
                status=view.cover_letter.status,
                data=view.cover_letter.data,
                error=view.cover_letter.error,
            ),
        )
