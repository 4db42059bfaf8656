from careeros.models.models import (
    PARSE_FAILED_NARRATIVE,
    AuditResult,
    JobCandidate,
    ParsedProfile,
    SprintTask,
)


class TestAuditResult:
    """Score clamping and defaults for audit records"""

    def test_scores_are_clamped(self):
        audit = AuditResult.from_payload({
            "readiness_score": 140,
            "market_match_score": -12,
            "project_quality_score": "55",
            "skill_map": {"Frontend": 120, "Backend": "70", "": 50, "DSA": "n/a"},
        })
        assert audit.readiness_score == 100
        assert audit.market_match_score == 0
        assert audit.project_quality_score == 55
        assert audit.skill_map == {"Frontend": 100, "Backend": 70, "DSA": 0}

    def test_scores_written_with_units(self):
        audit = AuditResult.from_payload({"readiness_score": "85%", "skill_map": {"Backend": "90/100"}})
        assert audit.readiness_score == 85
        assert audit.skill_map == {"Backend": 90}

    def test_skill_map_not_a_dict(self):
        assert AuditResult.from_payload({"skill_map": ["Python"]}).skill_map == {}

    def test_list_fields_accept_strings(self):
        audit = AuditResult.from_payload({"skill_gaps": "Kubernetes, Terraform"})
        assert audit.skill_gaps == ["Kubernetes", "Terraform"]

    def test_defaults(self):
        audit = AuditResult.defaults()
        assert audit.readiness_score == 0
        assert audit.skill_map == {}
        assert audit.skill_gaps == []
        assert audit.depth_vs_breadth == "N/A"
        assert audit.market_alignment_insights == PARSE_FAILED_NARRATIVE


class TestParsedProfile:
    def test_skills_deduplicated_keeping_first_spelling(self):
        profile = ParsedProfile.from_payload({"skills": ["Python", "python", "Go", "PYTHON", "go", "SQL"]})
        assert profile.skills == ["Python", "Go", "SQL"]

    def test_experience_years_normalization(self):
        assert ParsedProfile(experience_years="5+ years").experience_years == "5"
        assert ParsedProfile(experience_years=3.7).experience_years == "3"
        assert ParsedProfile(experience_years=["6"]).experience_years == "6"
        assert ParsedProfile(experience_years="unknown").experience_years == "0"
        assert ParsedProfile(experience_years=None).experience_years == "0"
        assert ParsedProfile(experience_years=-2).experience_years == "0"

    def test_strength_score_clamped(self):
        assert ParsedProfile(strength_score=300).strength_score == 100

    def test_entries_coerced(self):
        profile = ParsedProfile.from_payload({
            "education": ["BSc Computer Science", {"degree": "MSc", "institution": "MIT", "year": 2020}],
            "projects": [{"name": "CLI", "technologies": "Python, Click"}, 7],
        })
        assert profile.education[0].degree == "BSc Computer Science"
        assert profile.education[1].year == "2020"
        assert len(profile.projects) == 1
        assert profile.projects[0].technologies == ["Python", "Click"]

    def test_defaults_are_empty(self):
        profile = ParsedProfile.defaults()
        assert profile.skills == []
        assert profile.experience_years == "0"
        assert profile.strength_score == 0
        assert profile.summary == ""


class TestOtherRecords:
    def test_job_candidate_id_coerced_to_text(self):
        job = JobCandidate(id=42, title="Engineer", company="Acme", description=None)
        assert job.id == "42"
        assert job.description == ""

    def test_sprint_task_defaults_incomplete(self):
        assert SprintTask(description="Ship it").completed is False
