"""Tests for message template loading and rendering."""

from unittest.mock import patch

import pytest
from core.notifications import templates
from core.notifications.templates import Message, get_subject_and_body, load_templates


class TestLoadTemplates:
    def test_loads_yaml_file(self):
        loaded = load_templates()
        assert "registration_confirmation" in loaded
        assert isinstance(loaded["registration_confirmation"], Message)

    def test_entry_without_body_is_rejected(self, tmp_path):
        broken = tmp_path / "messages.yaml"
        broken.write_text('exam_result:\n  subject: "Exam Result"\n')

        with patch.object(templates, "TEMPLATES_PATH", broken), patch.object(
            templates, "_templates", None
        ):
            with pytest.raises(ValueError, match="exam_result.*body"):
                load_templates()


class TestGetSubjectAndBody:
    def test_renders_confirmation(self):
        message = get_subject_and_body(
            "registration_confirmation",
            {"exam_name": "Algebra", "exam_date": "Sunday, June 1, 2025"},
        )
        assert message.subject == "Exam Registration Confirmation"
        assert message.body == (
            "You have successfully registered for the exam: "
            "Algebra on Sunday, June 1, 2025."
        )

    def test_renders_exam_scheduled_body(self):
        message = get_subject_and_body(
            "exam_scheduled",
            {"exam_name": "Algebra", "exam_date": "Sunday, June 1, 2025"},
        )
        assert message.body == (
            'New exam "Algebra" has been scheduled for Sunday, June 1, 2025.'
        )

    def test_subject_without_placeholders_needs_no_context(self):
        assert get_subject_and_body("exam_reminder_today", {"exam_name": "X"}).subject == (
            "Exam Reminder"
        )

    def test_missing_variable_raises(self):
        with pytest.raises(KeyError):
            get_subject_and_body("exam_reminder", {"exam_name": "Algebra"})

    def test_unknown_type_raises(self):
        with pytest.raises(KeyError):
            get_subject_and_body("no_such_message", {})
