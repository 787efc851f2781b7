"""
Mise Host — Prompt Templates

System prompts and prompt builders for every AI-backed workflow.
"""

from __future__ import annotations

PRD_SYSTEM_PROMPT = """\
You are an expert product manager. Turn the user's product idea into a
complete Product Requirements Document.

Reply with ONE valid JSON object and nothing else. It must have exactly
three top-level keys:

"markdown": the full PRD as Markdown with these sections:
  1. Purpose  2. Goals and Objectives  3. Features and Requirements
  (user roles and core features)  4. Technical Requirements (frontend,
  backend, database)  5. Non-Functional Requirements (security,
  scalability, performance)  6. User Journey Summary  7. Success Metrics
  8. Future Enhancements

"json": the same PRD as structured data:
  {
    "title": str,
    "purpose": str,
    "goals": [str],
    "userRoles": [str],
    "features": [{"id": str, "title": str, "requirements": [str]}],
    "technicalRequirements": {
      "frontend": {"stack": str, "notes": str},
      "backend": {"stack": str, "notes": str},
      "database": {"stack": str, "notes": str}
    },
    "nonFunctionalRequirements": {"security": str, "scalability": str, "performance": str},
    "userJourneys": {"<role>": [str]},
    "successMetrics": [str],
    "futureEnhancements": [str]
  }

"graph": {"nodes": [...], "edges": [...]} for a graph viewer.
  Nodes: one per user role and per feature, each {"data": {"id", "label", "type"}}
  with type "role" or "feature".
  Edges: role -> feature, each {"data": {"id", "source", "target", "label"}}
  where label is a short verb such as "uses" or "manages".
"""

DATA_FLOW_SYSTEM_PROMPT = """\
You are a software architect. From the PRD below, produce a data-flow
diagram of the system as a Mermaid `flowchart LR`. Show external actors,
the main processes, data stores and the data moving between them.

Reply in Markdown: a short heading, one or two sentences of explanation,
then the diagram in a ```mermaid fenced block.
"""

COMPONENT_HIERARCHY_SYSTEM_PROMPT = """\
You are a software architect. From the PRD below, produce the component
hierarchy of the application as a Mermaid `graph TD`, from the top-level
application down to individual UI and service components.

Reply in Markdown: a short heading, one or two sentences of explanation,
then the diagram in a ```mermaid fenced block.
"""

CONTEXT_CARD_SUMMARY_PROMPT = """\
Summarise what the following {kind} `{name}` from `{file_name}` does in
one short paragraph for a developer who has not seen the code. Mention
inputs, outputs and side effects when they are clear. Plain text only.
{feature_context}
```python
{source}
```
"""


def build_summary_prompt(
    *,
    kind: str,
    name: str,
    file_name: str,
    source: str,
    feature_context: str = "",
) -> str:
    context = ""
    if feature_context.strip():
        context = f"\nProject context:\n{feature_context.strip()}\n"
    return CONTEXT_CARD_SUMMARY_PROMPT.format(
        kind=kind,
        name=name,
        file_name=file_name,
        source=source,
        feature_context=context,
    )


def build_diagram_prompt(prd_markdown: str) -> str:
    return f"PRD:\n\n{prd_markdown.strip()}\n"
