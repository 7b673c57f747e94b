import pytest
from unittest.mock import MagicMock, patch

from lms.domain.errors import AIClientError
from lms.services.ai_client import AIClient


class TestAIClient:
    """Tests for AIClient with mocked AI services."""

    def test_ai_client_initialization(self):
        client = AIClient(provider="gemini", timeout=5)
        assert client.provider == "gemini"
        assert client.timeout == 5
        assert client._gemini_initialized is False
        assert client._openai_initialized is False

    @patch('lms.services.ai_client.openai')
    @patch('lms.services.ai_client.settings')
    def test_generate_json_openai_success(self, mock_settings, mock_openai):
        mock_settings.OPENAI_API_KEY = "valid-api-key"
        mock_settings.LMS_OPENAI_MODEL = "gpt-4o-mini"
        mock_settings.LMS_BASE_URL = ""

        mock_openai_client = MagicMock()
        mock_response = MagicMock()
        mock_response.choices[0].message.content = ' {"score": 90, "feedback": "ok"} '
        mock_openai_client.chat.completions.create.return_value = mock_response
        mock_openai.OpenAI.return_value = mock_openai_client

        client = AIClient(provider="openai", timeout=7)
        result = client.generate_json("Grade this", "Some context", task_type="grading")

        assert result == {"score": 90, "feedback": "ok"}
        mock_openai.OpenAI.assert_called_once_with(api_key="valid-api-key", timeout=7, max_retries=0)
        kwargs = mock_openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert "Grade this" in kwargs["messages"][0]["content"]

    @patch('lms.services.ai_client.genai')
    @patch('lms.services.ai_client.settings')
    def test_generate_json_gemini_success(self, mock_settings, mock_genai):
        mock_settings.GEMINI_API_KEY = "valid-api-key"
        mock_settings.LMS_GEMINI_MODEL = "gemini-1.5-flash"

        mock_model = MagicMock()
        mock_model.generate_content.return_value.text = '{"learningPath": "advanced"}'
        mock_genai.GenerativeModel.return_value = mock_model

        client = AIClient(provider="gemini", timeout=3)
        result = client.generate_json("Recommend", "")

        assert result == {"learningPath": "advanced"}
        mock_genai.configure.assert_called_once_with(api_key="valid-api-key")
        assert mock_model.generate_content.call_args.kwargs["request_options"] == {"timeout": 3}

    def test_missing_openai_key(self):
        with patch('lms.services.ai_client.settings') as mock_settings:
            mock_settings.OPENAI_API_KEY = ""
            client = AIClient(provider="openai")
            with pytest.raises(AIClientError, match="OpenAI API key is not configured"):
                client._ensure_openai_initialized()

    def test_missing_gemini_key(self):
        with patch('lms.services.ai_client.settings') as mock_settings:
            mock_settings.GEMINI_API_KEY = ""
            client = AIClient(provider="gemini")
            with pytest.raises(AIClientError, match="Gemini API key is not configured"):
                client._ensure_gemini_initialized()

    @patch('lms.services.ai_client.genai')
    @patch('lms.services.ai_client.settings')
    def test_gemini_failure_becomes_client_error(self, mock_settings, mock_genai):
        mock_settings.GEMINI_API_KEY = "valid-api-key"
        mock_genai.GenerativeModel.return_value.generate_content.side_effect = TimeoutError("deadline")

        with pytest.raises(AIClientError):
            AIClient(provider="gemini").generate_json("Recommend", "")


class TestAISafetyPrompt:
    def test_create_safety_guard_prompt(self):
        from lms_utils.ai_safety import create_safety_guard_prompt

        prompt = create_safety_guard_prompt("Grade the answer", "Chapter 1 text")
        assert "educational assistant" in prompt
        assert "Chapter 1 text" in prompt
        assert "Task: Grade the answer" in prompt
        assert "JSON" in prompt
