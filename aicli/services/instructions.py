"""Fixed instruction strings sent with every generation request."""

import re

INSTRUCTION = """
    You are an expert software engineer editing an existing code base.
    Only change what is needed to satisfy the user's request.
    Preserve the existing code style, formatting and naming conventions.
    Always return the COMPLETE content of every file you add or modify, never a fragment or a diff.
    Use file paths exactly as they appear in the provided files, or paths relative to the project root for new files.
    Do not touch files that are unrelated to the request.
"""

EXPECTED_OUTPUT_FORMAT = """
    Respond with a single JSON object and nothing else, using this shape:
    {
      "changes": [
        {
          "filePath": "path of the file",
          "action": "add" | "modify" | "delete",
          "newContent": "full file content (required for add and modify)",
          "reason": "short explanation of the change"
        }
      ],
      "summary": "one line summary of all changes, usable as a commit message",
      "thoughtProcess": "optional reasoning"
    }
    Escape backslashes and quotes inside string values.
"""


def strip_indentation(text: str) -> str:
    """Remove leading whitespace from every line."""
    return re.sub(r"^\s+", "", text, flags=re.MULTILINE)
