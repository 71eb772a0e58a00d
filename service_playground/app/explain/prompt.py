"""
Prompt construction and response cleanup for code explanations.
"""

import json
import re
from typing import Any, Dict

from shared.errors import ValidationError

_BLANK_LINES = re.compile(r"\n\s*\n")
_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")

PROMPT_TEMPLATE = """
You are a specialized Python code tutor. Your task is to explain the provided Python code to a beginner.
Break the code into logical blocks and explain each block.

Rules:
1. Analyze the logic of the code.
2. Group related lines into a "block" (e.g., imports, a function definition, a loop, a print statement).
3. For each block, provide:
   - The exact code snippet.
   - A title.
   - A simple explanation (1-2 sentences).
   - A key Python concept involved.
4. If the code is just comments or empty, return an empty blocks array.
5. Output MUST be valid JSON.
6. Also generate a Mermaid.js flowchart syntax string representing the code's execution flow.
   - Start with "graph TD".
   - Use shapes:
     - id([Label]) for Start/End (Stadium shape).
     - id[Label] for Process steps.
     - id{{Label}} for Decisions (if/while).
   - CRITICAL: Labels must NOT contain parentheses "()", brackets "[]", braces "{{}}", or quotes.
   - Remove parameters from function names in labels (e.g., use "Define fib" instead of "Define fib(n)").
   - Keep labels extremely alphanumeric and simple.

Input Code:
---
{code}
---

Output JSON Schema (Strictly follow this):
{{
  "language": "python",
  "mermaid_code": "graph TD\\n...",
  "blocks": [
    {{
      "title": "block title",
      "code": "code snippet",
      "explanation": "simple text",
      "concept": "concept name"
    }}
  ]
}}
"""


def preprocess_code(code: Any, max_chars: int) -> str:
    """Trim, collapse blank lines and enforce the size limit."""
    if not code or not isinstance(code, str):
        raise ValidationError("No valid code provided")

    code = _BLANK_LINES.sub("\n", code.strip())
    if len(code) > max_chars:
        raise ValidationError(f"Code too long (>{max_chars} chars)")
    return code


def build_prompt(code: str) -> str:
    return PROMPT_TEMPLATE.format(code=code)


def parse_explanation(text: str) -> Dict[str, Any]:
    """Parse the model's JSON answer, tolerating a Markdown code fence."""
    text = _CODE_FENCE.sub("", text.strip())
    explanation = json.loads(text)
    if not isinstance(explanation, dict) or not isinstance(explanation.get("blocks"), list):
        raise ValueError("Invalid response structure from LLM")
    return explanation
