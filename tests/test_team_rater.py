"""
Team Section Rater Tests
tests/test_team_rater.py

Per-member file ratings, holistic member rating, and failed-member handling.
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from app.scoring.team_rater import INVALID_TEAM_DATA, MISSING_FILE, rate_team_section
from app.services.document_rater import DocumentRater
from conftest import (
    PROCUREMENT_ID,
    FakeDocumentRater,
    FakeDocumentStorage,
    FakeHolisticRater,
    doc_url,
    run,
)


def _rate(team_data, storage, document_rater, holistic_rater):
    return run(rate_team_section(
        team_data, PROCUREMENT_ID,
        storage=storage, document_rater=document_rater, holistic_rater=holistic_rater,
    ))


def _detail(result, name):
    return next(d for d in result.details if d.document_name == name)


class TestTeamSectionRater:

    @pytest.mark.parametrize("team_data", [None, {}, {"members": None}, {"members": ["pm"]}, "team"])
    def test_invalid_team_data(self, team_data, storage, document_rater, holistic_rater):
        result = _rate(team_data, storage, document_rater, holistic_rater)
        assert result.overall_score == 0
        assert result.details == []
        assert result.overall_reasoning == INVALID_TEAM_DATA

    def test_empty_member_map(self, storage, document_rater, holistic_rater):
        result = _rate({"members": {}}, storage, document_rater, holistic_rater)
        assert result.overall_score == 0
        assert result.details == []
        assert result.overall_reasoning.startswith("Team rating based on 0 evaluated members.")

    def test_members_rated(self, team_payload, storage, document_rater):
        holistic = FakeHolisticRater(answers={
            "project_manager": "Rating: 8\nExperienced lead.",
            "site_engineer": "Rating: 7\nGood fit.",
        })
        result = _rate(team_payload, storage, document_rater, holistic)
        assert result.overall_score == 7.5
        assert result.overall_reasoning == (
            "Team rating based on 2 evaluated members. Average Score: 7.5/10. "
            "See details for individual member evaluations."
        )
        overall = _detail(result, "member.project_manager.overall")
        assert overall.rating == 8
        assert overall.reasoning == "Experienced lead"

    def test_details_flatten_overall_then_files(self, team_payload, storage, document_rater, holistic_rater):
        result = _rate(team_payload, storage, document_rater, holistic_rater)
        names = [d.document_name for d in result.details]
        assert names[:4] == [
            "member.project_manager.overall",
            "project_manager.cv",
            "project_manager.diplomas",
            "project_manager.credentials",
        ]
        assert len(names) == 8

    def test_team_score_is_not_rounded(self, team_payload, storage, document_rater):
        holistic = FakeHolisticRater(answers={
            "project_manager": "Rating: 8",
            "site_engineer": "Rating: 9",
        })
        team_payload["members"]["qa_lead"] = {"fullName": "Kim", "cv": doc_url("qa_cv")}
        holistic.answers["qa_lead"] = "Rating: 6"
        result = _rate(team_payload, storage, document_rater, holistic)
        assert result.overall_score == pytest.approx(23 / 3)

    def test_missing_file_url(self, storage, document_rater, holistic_rater):
        team = {"members": {"pm": {"fullName": "Dana", "cv": doc_url("cv"), "diplomas": "on request"}}}
        result = _rate(team, storage, document_rater, holistic_rater)
        assert _detail(result, "pm.diplomas").reasoning == MISSING_FILE
        assert _detail(result, "pm.credentials").reasoning == MISSING_FILE
        assert _detail(result, "pm.cv").rating == 8
        assert len(storage.downloads) == 1

    def test_download_failure_reasoning(self, team_payload, document_rater, holistic_rater):
        storage = FakeDocumentStorage(failing=["pm_cv"])
        result = _rate(team_payload, storage, document_rater, holistic_rater)
        detail = _detail(result, "project_manager.cv")
        assert detail.rating == 0
        assert detail.reasoning.startswith("File download/processing failed: Failed to download")

    def test_ai_failure_reasoning(self, team_payload, storage, holistic_rater):
        rater = FakeDocumentRater(failing=["se_diplomas"])
        result = _rate(team_payload, storage, rater, holistic_rater)
        detail = _detail(result, "site_engineer.diplomas")
        assert detail.rating == 0
        assert detail.reasoning.startswith("AI rating failed:")

    def test_summary_passed_to_holistic_rater(self, team_payload, storage, document_rater, holistic_rater):
        _rate(team_payload, storage, document_rater, holistic_rater)
        prompt = next(p for p in holistic_rater.prompts if "(project_manager)" in p)
        assert "Member Role: project_manager" in prompt
        assert "Full Name: Dana Kovac" in prompt
        assert "Profession: Civil Engineer" in prompt
        assert "Years of Experience: 12" in prompt
        assert "Cv Rating: 8/10 (Document meets the requirements.)" in prompt
        assert "Rating: <number>" in prompt

    def test_summary_defaults_for_missing_attributes(self, storage, document_rater, holistic_rater):
        _rate({"members": {"pm": {}}}, storage, document_rater, holistic_rater)
        prompt = holistic_rater.prompts[0]
        assert "Full Name: N/A" in prompt
        assert "Years of Experience: N/A" in prompt
        assert f"Cv Rating: 0/10 ({MISSING_FILE})" in prompt

    def test_failed_member_kept_in_details_but_not_scored(self, team_payload, storage, document_rater):
        holistic = FakeHolisticRater(answer="Rating: 6", failing=["site_engineer"])
        result = _rate(team_payload, storage, document_rater, holistic)
        assert result.overall_score == 6
        assert "based on 1 evaluated members" in result.overall_reasoning
        failed = _detail(result, "member.site_engineer.overall")
        assert failed.rating == 0
        assert failed.reasoning.startswith("Overall rating failed:")
        assert _detail(result, "site_engineer.cv").rating == 8

    def test_all_members_failed(self, team_payload, storage, document_rater):
        holistic = FakeHolisticRater(failing=["project_manager", "site_engineer"])
        result = _rate(team_payload, storage, document_rater, holistic)
        assert result.overall_score == 0
        assert len(result.details) == 8

    def test_unparseable_holistic_answer_scores_zero(self, team_payload, storage, document_rater):
        holistic = FakeHolisticRater(answers={
            "project_manager": "I would say this person is great.",
            "site_engineer": "Rating: 10",
        })
        result = _rate(team_payload, storage, document_rater, holistic)
        pm = _detail(result, "member.project_manager.overall")
        assert pm.rating == 0
        assert pm.reasoning == "I would say this person is great."
        # still counted as an evaluated member
        assert result.overall_score == 5

    def test_non_object_member_skipped(self, storage, document_rater, holistic_rater):
        team = {"members": {"pm": {"fullName": "Dana"}, "ghost": None}}
        result = _rate(team, storage, document_rater, holistic_rater)
        assert not any("ghost" in (d.document_name or "") for d in result.details)
        assert "based on 1 evaluated members" in result.overall_reasoning

    def test_network_failure_keeps_member_files(self, storage, document_rater):
        class UnreachableHolisticRater(FakeHolisticRater):
            async def rate_text(self, prompt):
                raise httpx.ConnectError("connection reset")

        team = {"members": {"pm": {
            "fullName": "Dana",
            "cv": doc_url("pm_cv"),
            "diplomas": doc_url("pm_diplomas"),
            "credentials": doc_url("pm_credentials"),
        }}}
        result = _rate(team, storage, document_rater, UnreachableHolisticRater())

        names = [d.document_name for d in result.details]
        assert names == ["member.pm.overall", "pm.cv", "pm.diplomas", "pm.credentials"]
        overall = _detail(result, "member.pm.overall")
        assert overall.rating == 0
        assert overall.reasoning == "Overall rating failed: connection reset"
        assert _detail(result, "pm.cv").rating == 8
        assert result.overall_score == 0

    def test_file_network_failure_reported_as_ai_failure(self, storage, holistic_rater):
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(side_effect=httpx.ReadTimeout("read timed out"))
        rater = DocumentRater(client=client, model="test-model")

        team = {"members": {"pm": {"fullName": "Dana", "cv": doc_url("pm_cv")}}}
        result = _rate(team, storage, rater, holistic_rater)

        cv = _detail(result, "pm.cv")
        assert cv.rating == 0
        assert cv.document_url == doc_url("pm_cv")
        assert cv.reasoning == "AI rating failed: Document rater call failed: read timed out"
