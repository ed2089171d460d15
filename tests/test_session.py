import asyncio
import json
import unittest

from fakes import SAMPLE_INTERVIEW_PREP, SAMPLE_RESUME, FakeClient, fast_settings, prompt_text, sample_analysis

from careerdeck.core.errors import EmptySubmissionError, ExtractionError, InvalidTransitionError, UploadValidationError  # noqa: E402
from careerdeck.ui.session import ResumeSession  # noqa: E402
from careerdeck.ui.state import LOADING_MESSAGES, Analyzing, Failed, Idle, Results  # noqa: E402

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
METADATA_REPLY = json.dumps({"city": "Bengaluru", "experienceLevel": "fresher", "yearsExperience": "0"})


class SessionTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.client = FakeClient()
        self.session = ResumeSession("s-1", client=self.client, cfg=fast_settings())
        self.addCleanup(self.session.close)

    async def _analyze_sample(self):
        self.client.queue("analysis", json.dumps(sample_analysis()))
        self.session.update_input(resume_text=SAMPLE_RESUME)
        return await self.session.analyze()


class InputTests(SessionTestCase):
    def test_query_params_prefill_form(self):
        session = ResumeSession(
            "s-2",
            client=self.client,
            cfg=fast_settings(),
            query_params={"city": "Pune", "experienceLevel": "student", "mode": "turbo"},
        )
        self.assertEqual(session.user_input.city, "Pune")
        self.assertEqual(session.user_input.experience_level, "student")
        self.assertEqual(session.user_input.mode, "fast")

    def test_typed_text_is_truncated_with_notice(self):
        self.session.update_input(resume_text="a" * 15005)
        self.assertEqual(len(self.session.user_input.resume_text), 15000)
        self.assertTrue(self.session.snapshot().input.truncation_notice)

    async def test_oversize_file_leaves_input_untouched(self):
        self.session.update_input(resume_text="keep this")
        await self.session.upload(filename="cv.png", content_type="image/png", content=PNG_BYTES)
        with self.assertRaises(UploadValidationError):
            await self.session.upload(filename="cv.txt", content_type="text/plain", content=b"a" * (2 * 1024 * 1024 + 1))
        self.assertEqual(self.session.user_input.resume_text, "keep this")
        self.assertTrue(self.session.user_input.has_image)
        self.assertIn("smaller than 2MB", self.session.error_message)
        self.assertIsInstance(self.session.view, Idle)

    async def test_pdf_failure_stays_idle_with_message(self):
        with self.assertRaises(ExtractionError):
            await self.session.upload(filename="cv.pdf", content_type="application/pdf", content=b"%PDF-1.4 garbage")
        self.assertIsInstance(self.session.view, Idle)
        self.assertIn("password protected or corrupted", self.session.snapshot().error_message)
        self.assertFalse(self.session.extracting)

    async def test_image_upload_sets_preview_and_text_upload_clears_it(self):
        await self.session.upload(filename="cv.png", content_type="image/png", content=PNG_BYTES)
        self.assertTrue(self.session.snapshot().input.image_preview.startswith("data:image/png;base64,"))
        await self.session.upload(filename="cv.txt", content_type="text/plain", content=b"short")
        view = self.session.snapshot().input
        self.assertFalse(view.has_image)
        self.assertIsNone(view.image_preview)
        self.assertEqual(view.resume_text, "short")

    async def test_clear_image(self):
        await self.session.upload(filename="cv.png", content_type="image/png", content=PNG_BYTES)
        self.session.clear_image()
        self.assertFalse(self.session.user_input.has_image)
        self.assertIsNone(self.session.image_preview)


class AutofillTests(SessionTestCase):
    async def test_document_upload_autofills_profile(self):
        self.client.queue("metadata", METADATA_REPLY)
        upload = await self.session.upload(filename="cv.txt", content_type="text/plain", content=SAMPLE_RESUME.encode())
        self.assertTrue(upload.should_autofill)
        self.assertTrue(self.session.autofilling)
        await self.session.wait_for_autofill()
        self.assertFalse(self.session.autofilling)
        self.assertEqual(self.session.user_input.city, "Bengaluru")
        self.assertEqual(self.session.user_input.years_experience, "0")

    async def test_autofill_failure_is_silent(self):
        self.client.queue("metadata", RuntimeError("quota"))
        await self.session.upload(filename="cv.txt", content_type="text/plain", content=SAMPLE_RESUME.encode())
        await self.session.wait_for_autofill()
        self.assertEqual(self.session.user_input.city, "")
        self.assertEqual(self.session.error_message, "")

    async def test_autofill_after_reset_is_discarded(self):
        gate = self.client.gates["metadata"] = asyncio.Event()
        self.client.queue("metadata", METADATA_REPLY)
        await self.session.upload(filename="cv.txt", content_type="text/plain", content=SAMPLE_RESUME.encode())
        await asyncio.sleep(0)
        self.session.reset()
        gate.set()
        await asyncio.sleep(0.01)
        self.assertEqual(self.session.user_input.city, "")
        self.assertFalse(self.session.autofilling)

    async def test_newer_upload_supersedes_pending_autofill(self):
        def reply(request):
            city = "New City" if "Mumbai" in prompt_text(request) else "Old City"
            return json.dumps({"city": city})

        client = FakeClient(handler=reply)
        gate = client.gates["metadata"] = asyncio.Event()
        session = ResumeSession("s-3", client=client, cfg=fast_settings())
        self.addCleanup(session.close)
        await session.upload(filename="a.txt", content_type="text/plain", content=SAMPLE_RESUME.encode())
        await asyncio.sleep(0)
        await session.upload(filename="b.txt", content_type="text/plain", content=(SAMPLE_RESUME + "\nMumbai").encode())
        gate.set()
        await session.wait_for_autofill()
        self.assertEqual(len(client.requests_of("metadata")), 2)
        self.assertEqual(session.user_input.city, "New City")


class AnalysisFlowTests(SessionTestCase):
    async def test_empty_submission_is_rejected(self):
        with self.assertRaises(EmptySubmissionError):
            await self.session.analyze()
        self.assertIsInstance(self.session.view, Idle)
        self.assertEqual(self.session.error_message, "Please provide a resume text or upload an image.")

    async def test_successful_analysis_shows_results(self):
        state = await self._analyze_sample()
        self.assertIsInstance(state, Results)
        snapshot = self.session.snapshot()
        self.assertEqual(snapshot.state, "RESULTS")
        self.assertEqual([card.card.match_score for card in snapshot.cards], [86, 71, 64])
        self.assertEqual(snapshot.demand_mix["Low"]["count"], 1)
        self.assertEqual(snapshot.query_params, {"city": "", "experienceLevel": "fresher", "mode": "fast"})
        self.assertIsNone(snapshot.loading_message)

    async def test_failed_analysis_shows_error_and_allows_retry(self):
        self.client.queue("analysis", RuntimeError("bad key"))
        self.session.update_input(resume_text=SAMPLE_RESUME)
        state = await self.session.analyze()
        self.assertIsInstance(state, Failed)
        self.assertIn("check your API Key", self.session.snapshot().error_message)

        self.client.queue("analysis", json.dumps(sample_analysis()))
        self.assertIsInstance(await self.session.analyze(), Results)

    async def test_form_is_locked_while_analyzing(self):
        gate = self.client.gates["analysis"] = asyncio.Event()
        self.client.queue("analysis", json.dumps(sample_analysis()))
        self.session.update_input(resume_text=SAMPLE_RESUME)
        await self.session.analyze(wait=False)
        self.assertIsInstance(self.session.view, Analyzing)
        with self.assertRaises(InvalidTransitionError):
            self.session.update_input(city="Noida")
        with self.assertRaises(InvalidTransitionError):
            await self.session.analyze()
        gate.set()
        await asyncio.sleep(0.01)
        self.assertIsInstance(self.session.view, Results)

    async def test_loading_message_rotates_while_analyzing(self):
        gate = self.client.gates["analysis"] = asyncio.Event()
        self.client.queue("analysis", json.dumps(sample_analysis()))
        self.session.update_input(resume_text=SAMPLE_RESUME)
        await self.session.analyze(wait=False)
        self.assertEqual(self.session.snapshot().loading_message, LOADING_MESSAGES[0])
        seen = set()
        for _ in range(15):
            await asyncio.sleep(0.01)
            seen.add(self.session.snapshot().loading_message)
        self.assertGreater(len(seen), 1)
        gate.set()
        await asyncio.sleep(0.01)
        self.assertFalse(self.session.loading.running)

    async def test_reset_mid_flight_discards_late_result(self):
        gate = self.client.gates["analysis"] = asyncio.Event()
        self.client.queue("analysis", json.dumps(sample_analysis()))
        self.session.update_input(resume_text=SAMPLE_RESUME)
        await self.session.analyze(wait=False)
        await asyncio.sleep(0)
        self.session.reset()
        gate.set()
        await asyncio.sleep(0.01)
        snapshot = self.session.snapshot()
        self.assertEqual(snapshot.state, "IDLE")
        self.assertEqual(snapshot.cards, [])
        self.assertEqual(snapshot.input.resume_text, "")
        self.assertEqual(snapshot.error_message, "")

    async def test_reset_keeps_city_and_level_but_clears_inputs(self):
        self.session.update_input(city="Hyderabad", experience_level="student", years_experience="1", more_roles=True)
        await self._analyze_sample()
        self.session.reset()
        self.assertIsInstance(self.session.view, Idle)
        self.assertEqual(self.session.user_input.city, "Hyderabad")
        self.assertEqual(self.session.user_input.experience_level, "student")
        self.assertEqual(self.session.user_input.years_experience, "")
        self.assertFalse(self.session.user_input.more_roles)
        self.assertEqual(self.session.query_params, {})

    async def test_logout_signs_out_and_resets(self):
        self.session.user.login("priya@example.com")
        await self._analyze_sample()
        self.session.logout()
        self.assertIsNone(self.session.snapshot().user_email)
        self.assertIsInstance(self.session.view, Idle)


class ResultsViewTests(SessionTestCase):
    async def test_sort_controls(self):
        await self._analyze_sample()
        self.session.set_sort("demand", "desc")
        self.assertEqual([c.card.job_title for c in self.session.display_cards()],
                         ["Backend Developer", "Data Analyst", "Technical Support Engineer"])
        self.session.toggle_sort_order()
        self.assertEqual(self.session.sort_order, "asc")
        self.assertEqual(self.session.display_cards()[0].card.job_title, "Technical Support Engineer")

    async def test_resume_tab_reveals_score(self):
        await self._analyze_sample()
        self.session.set_tab("resume")
        self.assertTrue(self.session.snapshot().resume_audit.revealing)
        await self.session.score_reveal.wait()
        audit = self.session.snapshot().resume_audit
        self.assertFalse(audit.revealing)
        self.assertEqual(audit.displayed_score, 72)
        self.assertEqual(audit.score_label, "Good")

    async def test_tab_requires_results(self):
        with self.assertRaises(InvalidTransitionError):
            self.session.set_tab("resume")

    async def test_expand_card(self):
        await self._analyze_sample()
        self.assertTrue(self.session.toggle_card_expanded(1).expanded)
        self.assertFalse(self.session.toggle_card_expanded(1).expanded)
        with self.assertRaises(IndexError):
            self.session.toggle_card_expanded(9)


class CardPanelFlowTests(SessionTestCase):
    async def test_panels_are_exclusive_and_cached(self):
        await self._analyze_sample()
        self.client.queue("interview_prep", json.dumps(SAMPLE_INTERVIEW_PREP))
        self.client.queue("cover_letter", "Dear [Hiring Manager Name], ...")

        card = await self.session.toggle_card_panel(0, "interview_prep")
        self.assertEqual(card.panel, "interview_prep")
        self.assertEqual(card.interview_prep.status, "ready")

        card = await self.session.toggle_card_panel(0, "cover_letter")
        self.assertEqual(card.panel, "cover_letter")
        self.assertEqual(card.cover_letter.data, "Dear [Hiring Manager Name], ...")

        card = await self.session.toggle_card_panel(0, "interview_prep")
        self.assertEqual(card.panel, "interview_prep")
        self.assertEqual(len(self.client.requests_of("interview_prep")), 1)

        card = await self.session.toggle_card_panel(0, "interview_prep")
        self.assertEqual(card.panel, "closed")

    async def test_secondary_prompt_uses_analyzed_resume(self):
        await self._analyze_sample()
        self.client.queue("cover_letter", "Dear team")
        await self.session.toggle_card_panel(2, "cover_letter")
        request = self.client.requests_of("cover_letter")[0]
        self.assertIn('"Technical Support Engineer"', request.parts[0].text)
        self.assertIn("Priya Sharma", request.parts[0].text)

    async def test_failure_is_shown_inline_and_can_be_retried(self):
        await self._analyze_sample()
        self.client.queue("interview_prep", "not json")
        card = await self.session.toggle_card_panel(1, "interview_prep")
        self.assertEqual(card.interview_prep.status, "error")
        self.assertEqual(card.interview_prep.error, "Could not generate interview questions.")
        self.assertEqual(self.session.snapshot().state, "RESULTS")

        await self.session.toggle_card_panel(1, "interview_prep")
        self.client.queue("interview_prep", json.dumps(SAMPLE_INTERVIEW_PREP))
        card = await self.session.toggle_card_panel(1, "interview_prep")
        self.assertEqual(card.interview_prep.status, "ready")

    async def test_panel_result_after_reset_is_dropped(self):
        await self._analyze_sample()
        gate = self.client.gates["cover_letter"] = asyncio.Event()
        self.client.queue("cover_letter", "Dear team")
        card = await self.session.toggle_card_panel(0, "cover_letter", wait=False)
        self.assertEqual(card.cover_letter.status, "loading")
        self.session.reset()
        gate.set()
        await asyncio.sleep(0.01)
        self.assertEqual(self.session.cards, [])


if __name__ == "__main__":
    unittest.main()
