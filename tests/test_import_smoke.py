import sys
import pytest
from unittest.mock import patch


@pytest.mark.parametrize("classifier_backend", ["llm", "heuristic"])
@pytest.mark.parametrize("fallback", ["true", "false"])
def test_import_graph_smoke(classifier_backend, fallback):
    """
    Verify that the app can be imported without crashing,
    regardless of backend flags.
    """
    with patch.dict("os.environ", {
        "CLASSIFIER_BACKEND": classifier_backend,
        "CLASSIFIER_FALLBACK_TO_HEURISTIC": fallback,
        "REDIS_URL": "redis://localhost:6379/0",  # harmless default
    }):
        # Force reload of modules to test import side-effects
        if "sentinel.main" in sys.modules:
            del sys.modules["sentinel.main"]

        try:
            import sentinel.main
            import sentinel.llm.analyzer
            import sentinel.queue.jobs
        except ImportError as e:
            pytest.fail(f"Import failed with backend={classifier_backend} fallback={fallback}: {e}")


def test_uvicorn_importable():
    """
    Simulate uvicorn import string loading.
    """
    from sentinel.main import app
    assert app is not None


def test_prompts_ship_with_package():
    from sentinel.llm.prompting import load_prompt

    assert "{language_instruction}" in load_prompt("analyzer_system.txt")
    assert "{message_content}" in load_prompt("assistant_system.txt")
