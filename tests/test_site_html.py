"""Regression tests for the embedded single-page form."""

from prompt_optimizer.app import INDEX_HTML
from prompt_optimizer.prompts import PARAMETER_ORDER


class TestIndexHtml:
    def test_every_parameter_has_a_control(self):
        for name in PARAMETER_ORDER:
            assert f'id="{name}"' in INDEX_HTML
            assert f"{name}: " in INDEX_HTML

    def test_prompt_is_required(self):
        assert '<textarea id="input_prompt" name="input_prompt" required' in INDEX_HTML

    def test_submit_disabled_while_pending(self):
        assert "submitButton.disabled = pending;" in INDEX_HTML
        assert "if (submitButton.disabled) return;" in INDEX_HTML

    def test_copy_label_reverts_after_two_seconds(self):
        assert "const COPY_RESET_MS = 2000;" in INDEX_HTML
        assert "navigator.clipboard.writeText(copyPayload)" in INDEX_HTML
        assert "button.textContent = COPY_LABEL;" in INDEX_HTML

    def test_copy_reported_to_session(self):
        assert "fetch('/copy', { method: 'POST' })" in INDEX_HTML
        assert "label = data.copy_label;" in INDEX_HTML
        assert "resetMs = data.reset_ms;" in INDEX_HTML

    def test_blocks_rendered_as_text_not_html(self):
        assert "li.textContent = bullet;" in INDEX_HTML
        assert "area.value = block.code;" in INDEX_HTML
        assert "innerHTML = block" not in INDEX_HTML
