from pathlib import Path

from contract_pipeline.llm.exceptions import LlmError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_prompt(name: str, prompt_dir: Path | None = None) -> str:
    """Load a bundled prompt template, e.g. ``analysis_user``.

    Templates meant for ``str.format`` escape literal braces as ``{{``/``}}``.

    Raises:
        LlmError: if the file cannot be read.
    """
    path = (prompt_dir or _DEFAULT_PROMPT_DIR) / f"{name}.txt"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise LlmError(f"Failed to load prompt template '{name}': {exc}") from exc
