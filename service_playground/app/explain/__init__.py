from .client import ExplainClient
from .prompt import build_prompt, parse_explanation, preprocess_code

__all__ = ["ExplainClient", "build_prompt", "parse_explanation", "preprocess_code"]
