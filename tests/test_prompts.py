"""Tests for building the provider-agnostic extraction request."""

from atomic_notes.core.models import Clipping, ExtractionPolicy
from atomic_notes.core.prompts import build_extraction_request, extract_summary_section


def clipping(text):
    return Clipping(id="Clippings/a.md", path="Clippings/a.md", text=text)


class TestSummarySection:
    def test_collects_lines_until_next_heading(self):
        text = "# Title\nintro\n## Summary\nKey point one.\nKey point two.\n## Details\nmore"
        assert extract_summary_section(text) == "Key point one.\nKey point two."

    def test_heading_match_is_case_insensitive_at_any_level(self):
        text = "###### Executive SUMMARY\nShort version.\n"
        assert extract_summary_section(text) == "Short version."

    def test_runs_to_end_of_document_without_following_heading(self):
        assert extract_summary_section("## Summary\nline a\nline b") == "line a\nline b"

    def test_missing_or_empty_summary_is_none(self):
        assert extract_summary_section("# Notes\nNo summary heading here.") is None
        assert extract_summary_section("## Summary\n\n## Next\ntext") is None

    def test_summary_word_outside_heading_is_ignored(self):
        assert extract_summary_section("In summary, this is prose.\n") is None


class TestBuildExtractionRequest:
    def test_system_instruction_encodes_bounds_and_schema(self):
        request = build_extraction_request(clipping("Body"), ExtractionPolicy(min_ideas=2, max_ideas=5, target_ideas=3))
        assert "Return only JSON" in request.system
        assert "between 2 and 5 ideas" in request.system
        assert "about 3 distinct ideas" in request.system
        assert "label (string), idea (string), tags (optional string array)" in request.system
        assert "Never invent content" in request.system
        assert "Custom instructions" not in request.system

    def test_custom_prompt_is_appended_verbatim(self):
        policy = ExtractionPolicy(custom_prompt="  Focus on economics.  ")
        request = build_extraction_request(clipping("Body"), policy)
        assert request.system.endswith("Custom instructions: Focus on economics.")

    def test_user_instruction_without_summary_holds_full_text_only(self):
        request = build_extraction_request(clipping("Plain {braces} text"), ExtractionPolicy())
        assert "Plain {braces} text" in request.user
        assert "use this summary" not in request.user
        assert '[{"label":"Idea","idea":"One or two sentences.","tags":["topic"]}]' in request.user

    def test_user_instruction_with_summary_has_two_parts(self):
        text = "## Summary\nCore claim.\n## Body\nLonger discussion."
        request = build_extraction_request(clipping(text), ExtractionPolicy())
        summary_at = request.user.index("use this summary")
        refine_at = request.user.index("use the full clipping text below")
        assert summary_at < request.user.index("Core claim.") < refine_at
        assert request.user.rstrip().endswith('Longer discussion.\n"""')
