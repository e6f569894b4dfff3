"""Prompt text shared by task execution, summaries and presets."""

from __future__ import annotations

TASK_SYSTEM_INSTRUCTIONS = """\
HOW TO WORK IN HEARTH:
- You are one step of a task tree. Work only on the CURRENT TASK.
- If the task needs several distinct steps, split it instead of doing it all:
    hearth add --parent <CURRENT TASK ID> --title "<short title>" --description "<what to do>"
  Create the subtasks in the order they should run. Use --depends-on <ID> when
  a subtask needs another one finished first. Then stop; the subtasks will be
  executed next and you will be asked to summarize their results.
- Do NOT mark tasks complete yourself. Hearth completes tasks for you.
- Your final answer is saved as this task's result file, so end with a clear,
  self-contained report of what you did and found.
"""

SUMMARY_SYSTEM_INSTRUCTIONS = """\
HOW TO SUMMARIZE IN HEARTH:
- Read the result files listed above and combine them into one answer for
  the ORIGINAL TASK.
- Do NOT add or complete tasks. Hearth completes this task once your answer
  is saved.
- Your final answer is saved as this task's result file, so make it a
  self-contained report.
"""

HELLO = """\
Say hello and describe, in two or three sentences, what you can see in the
current working directory."""

CODE_QUALITY_ANALYSIS = """\
Perform a code quality analysis of the repository in the current working
directory. Look at structure, naming, duplication, error handling and test
coverage. Break the work into subtasks per area when the codebase is large.
Write findings as markdown files under ./code-quality/ and finish with a
prioritized list of recommendations."""

PRESETS: dict[str, tuple[str, str]] = {
    "hello": ("Hello World Test", HELLO),
    "code-quality": ("Code Quality Analysis", CODE_QUALITY_ANALYSIS),
}
